"""Application-layer value objects for IAM bounded context.

These are value objects specific to the application layer: the requests
callers submit for reconciliation and the uniform result record each of
them produces.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from iam.domain.value_objects import (
    AssignmentAction,
    ErrorCode,
    PrincipalKind,
    ReconciliationStatus,
)


@dataclass(frozen=True)
class ReconciliationRequest:
    """Desired state for one (principal, role) pair.

    Attributes:
        principal: User email or user-group name
        role: Role display name
        scope_groups: Scope-group names; empty means the entire tenant
        principal_kind: Optional hint overriding email/group detection
    """

    principal: str
    role: str
    scope_groups: tuple[str, ...] = field(default_factory=tuple)
    principal_kind: PrincipalKind | None = None


@dataclass(frozen=True)
class UnassignRequest:
    """Request to remove one assignment from a principal.

    Exactly one of role or assignment_id must be given.

    Attributes:
        principal: User email or user-group name
        role: Role display name of the assignment to remove
        assignment_id: Platform identifier of the assignment to remove
        principal_kind: Optional hint overriding email/group detection
    """

    principal: str
    role: str | None = None
    assignment_id: str | None = None
    principal_kind: PrincipalKind | None = None

    def __post_init__(self) -> None:
        if (self.role is None) == (self.assignment_id is None):
            raise ValueError("Exactly one of role or assignment_id must be given")

    @property
    def target(self) -> str:
        """The role name or assignment id being removed."""
        return self.role if self.role is not None else str(self.assignment_id)


@dataclass(frozen=True)
class ReconciliationResult:
    """Uniform outcome record; exactly one is produced per request.

    Attributes:
        principal: The principal reference as submitted
        role: The role display name (or assignment id) as submitted
        scope: Resolved scope-group GRNs when resolution succeeded, the
            requested names otherwise; empty means the entire tenant
        action: The classified action, None if classification never ran
        status: Terminal status
        detail: Human-readable explanation
        error_code: Machine-readable error classification
        http_status: HTTP status reported by the platform, if any
        platform_error_code: The platform's own error code, verbatim
        assignment_id: The assignment created, changed or removed
        previous_scope: Scope replaced by a Modify or removed by a Remove
    """

    principal: str
    role: str
    scope: tuple[str, ...]
    action: AssignmentAction | None
    status: ReconciliationStatus
    detail: str
    error_code: ErrorCode | None = None
    http_status: int | None = None
    platform_error_code: str | None = None
    assignment_id: str | None = None
    previous_scope: tuple[str, ...] | None = None


@dataclass(frozen=True)
class ExecutionOutcome:
    """Classified outcome of executing one diff.

    Attributes:
        action: The action that was executed
        status: Terminal status of the execution
        detail: Human-readable explanation
        assignment_id: The assignment created, changed or removed
        error_code: Machine-readable error classification
        http_status: HTTP status reported by the platform, if any
        platform_error_code: The platform's own error code, verbatim
    """

    action: AssignmentAction
    status: ReconciliationStatus
    detail: str
    assignment_id: str | None = None
    error_code: ErrorCode | None = None
    http_status: int | None = None
    platform_error_code: str | None = None
