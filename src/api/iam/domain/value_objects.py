"""Value objects for IAM domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for identifiers and domain concepts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Iterable


@dataclass(frozen=True)
class PrincipalId:
    """Stable platform identifier for a user or user group."""

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def from_string(cls, value: str) -> PrincipalId:
        """Create PrincipalId from string value.

        Raises:
            ValueError: If value is empty or blank
        """
        if not value or not value.strip():
            raise ValueError("PrincipalId cannot be empty")
        return cls(value=value)


@dataclass(frozen=True)
class AssignmentId:
    """Identifier assigned by the platform when an assignment is created."""

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def from_string(cls, value: str) -> AssignmentId:
        """Create AssignmentId from string value.

        Raises:
            ValueError: If value is empty or blank
        """
        if not value or not value.strip():
            raise ValueError("AssignmentId cannot be empty")
        return cls(value=value)


class PrincipalKind(StrEnum):
    """Kinds of principal that can hold a role assignment."""

    USER = "user"
    USER_GROUP = "user_group"


class AuthSource(StrEnum):
    """Where a principal's identity is managed.

    Only LOCAL principals are managed by the platform itself; SSO/SCIM
    and EXTERNAL principals are owned by an upstream identity provider.
    """

    LOCAL = "Local"
    SSO = "SSO"
    EXTERNAL = "External"

    def is_locally_managed(self) -> bool:
        """Check if assignments on this principal may be mutated here."""
        return self == AuthSource.LOCAL


class RoleCapability(StrEnum):
    """Whether a role can be restricted to scope groups.

    WORKSPACE_LEVEL roles are inherently tenant-wide. SCOPABLE roles may be
    bound to the whole tenant or to one or more scope groups.
    """

    WORKSPACE_LEVEL = "workspace_level"
    SCOPABLE = "scopable"


@dataclass(frozen=True)
class ScopeDescriptor:
    """The reach of an assignment.

    Either the entire tenant (no scope groups) or an explicit, non-empty
    set of scope-group GRNs. Comparison is set based, so the order in which
    scope groups were requested or returned never matters.
    """

    scope_group_grns: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def entire_tenant(cls) -> ScopeDescriptor:
        """Descriptor covering the whole tenant."""
        return cls()

    @classmethod
    def of(cls, scope_group_grns: Iterable[str]) -> ScopeDescriptor:
        """Descriptor restricted to the given scope groups.

        Raises:
            ValueError: If no scope groups are given
        """
        grns = frozenset(scope_group_grns)
        if not grns:
            raise ValueError(
                "Scope group set must not be empty; use entire_tenant() instead"
            )
        return cls(scope_group_grns=grns)

    @property
    def is_entire_tenant(self) -> bool:
        """Check if this descriptor covers the whole tenant."""
        return not self.scope_group_grns

    def sorted_grns(self) -> tuple[str, ...]:
        """Scope-group GRNs in a stable order for display and payloads."""
        return tuple(sorted(self.scope_group_grns))

    def __str__(self) -> str:
        """Return string representation."""
        if self.is_entire_tenant:
            return "EntireTenant"
        return ",".join(self.sorted_grns())


class AssignmentAction(StrEnum):
    """Action needed to converge current state to desired state."""

    NO_OP = "NoOp"
    CREATE = "Create"
    MODIFY = "Modify"
    REMOVE = "Remove"


class ReconciliationStatus(StrEnum):
    """Terminal status of a single reconciliation request."""

    COMPLETE = "Complete"
    FAILED = "Failed"
    WARNING = "Warning"
    CANCELLED = "Cancelled"


class ErrorCode(StrEnum):
    """Machine-readable error classification written into results."""

    NOT_FOUND = "NotFound"
    INCOMPATIBLE_SCOPE = "IncompatibleScope"
    UNAUTHORIZED = "Unauthorized"
    CONFLICT = "Conflict"
    TRANSIENT_LOOKUP_ERROR = "TransientLookupError"
    PLATFORM_ERROR = "PlatformError"
    UNEXPECTED_ERROR = "UnexpectedError"
    CANCELLED = "Cancelled"


class RequestStage(StrEnum):
    """Non-terminal stages a reconciliation request passes through."""

    RECEIVED = "received"
    RESOLVING = "resolving"
    VALIDATING = "validating"
    DIFFING = "diffing"
    EXECUTING = "executing"


@dataclass(frozen=True)
class PlatformContext:
    """Tenant/workspace context used to build and interpret identifiers.

    Passed explicitly to the services that need it instead of living in
    process-wide state.

    Attributes:
        tenant_id: The tenant all assignments are made in
        region: Default region for tenant-owned resources
        partition: Platform partition segment of GRNs
        identity_service: GRN service segment for tenant-owned IAM resources
        internal_role_service: GRN service segment marking the internal
            variant of a role when display names collide
    """

    tenant_id: str
    region: str = ""
    partition: str = ""
    identity_service: str = "iam"
    internal_role_service: str = "internal"
