"""Directory gateway protocols (ports) for IAM bounded context.

The directory gateway is the only component that talks to the platform.
Implementations own transport, pagination, authentication and the wire
format; they hand back typed records and always return lists from
lookups, whatever cardinality or envelope the platform answered with.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from iam.domain.value_objects import (
    AssignmentId,
    AuthSource,
    PrincipalId,
    PrincipalKind,
    ScopeDescriptor,
)


@dataclass(frozen=True)
class PrincipalRecord:
    """A user or user group as returned by the directory."""

    id: str
    kind: PrincipalKind
    name: str
    auth_source: AuthSource


@dataclass(frozen=True)
class RoleRecord:
    """A role as returned by the directory.

    Attributes:
        role_id: Platform identifier of the role
        display_name: Human-facing name, not unique across services
        service: Owning service
        workspace_level: True if the role cannot be scoped to scope groups
        grn: Canonical name, when the platform includes it
    """

    role_id: str
    display_name: str
    service: str
    workspace_level: bool
    grn: str | None = None


@dataclass(frozen=True)
class ScopeGroupRecord:
    """A scope group as returned by the directory."""

    id: str
    name: str = ""
    region: str | None = None
    grn: str | None = None


@dataclass(frozen=True)
class AssignmentRecord:
    """A current role assignment as returned by the directory.

    Attributes:
        id: Platform-assigned assignment identifier
        principal_id: The principal holding the assignment
        role_grn: Canonical name of the bound role
        entire_tenant: True if the assignment covers the whole tenant
        scope_groups: Scope groups the assignment is restricted to
    """

    id: str
    principal_id: str
    role_grn: str
    entire_tenant: bool
    scope_groups: tuple[ScopeGroupRecord, ...] = field(default_factory=tuple)


@runtime_checkable
class IDirectoryGateway(Protocol):
    """Read-only directory lookups.

    Lookups return an empty list when nothing matches; they raise only
    on transport or authentication failure.
    """

    async def lookup_principals(
        self, reference: str, kind: PrincipalKind
    ) -> list[PrincipalRecord]:
        """Look up users by email or user groups by name.

        Args:
            reference: User email or user-group name
            kind: Which directory to search

        Returns:
            Matching principal records (possibly empty)

        Raises:
            TransientLookupError: If the platform cannot be reached
            PlatformError: If the platform rejects the lookup
        """
        ...

    async def lookup_roles(self, display_name: str) -> list[RoleRecord]:
        """Look up roles by display name.

        May return several roles sharing a display name across services.

        Raises:
            TransientLookupError: If the platform cannot be reached
            PlatformError: If the platform rejects the lookup
        """
        ...

    async def lookup_scope_groups(self, name: str) -> list[ScopeGroupRecord]:
        """Look up scope groups by name.

        Raises:
            TransientLookupError: If the platform cannot be reached
            PlatformError: If the platform rejects the lookup
        """
        ...

    async def list_assignments(self, principal_id: PrincipalId) -> list[AssignmentRecord]:
        """List every current role assignment held by a principal.

        Follows pagination to the end.

        Raises:
            TransientLookupError: If the platform cannot be reached
            PlatformError: If the platform rejects the lookup
        """
        ...


@runtime_checkable
class IAssignmentWriter(Protocol):
    """Mutating assignment calls. Each method issues exactly one platform call."""

    async def create_assignment(
        self,
        principal_id: PrincipalId,
        role_grn: str,
        scope: ScopeDescriptor,
    ) -> AssignmentId:
        """Create an assignment.

        Returns:
            The identifier the platform assigned

        Raises:
            ConflictError: If the platform reports the assignment already exists
            TransientLookupError: If the platform cannot be reached
            PlatformError: If the platform rejects the request
        """
        ...

    async def update_assignment(
        self,
        assignment_id: AssignmentId,
        scope: ScopeDescriptor,
    ) -> None:
        """Replace the scope of an existing assignment.

        Raises:
            NotFoundError: If the assignment no longer exists
            ConflictError: If the platform reports the scope is already set
            TransientLookupError: If the platform cannot be reached
            PlatformError: If the platform rejects the request
        """
        ...

    async def delete_assignment(self, assignment_id: AssignmentId) -> None:
        """Delete an assignment.

        An empty successful response is success.

        Raises:
            NotFoundError: If the assignment no longer exists
            TransientLookupError: If the platform cannot be reached
            PlatformError: If the platform rejects the request
        """
        ...


@runtime_checkable
class ISessionProvider(Protocol):
    """Establishes the authenticated platform session for a run."""

    async def open_session(self) -> None:
        """Ensure a valid session exists.

        Raises:
            SessionEstablishmentError: If no session can be established
        """
        ...
