"""Assignment aggregate for IAM context."""

from __future__ import annotations

from dataclasses import dataclass

from iam.domain.value_objects import AssignmentId, PrincipalId, ScopeDescriptor


@dataclass(frozen=True)
class Assignment:
    """Binding of exactly one role to exactly one principal.

    Business rules:
    - At most one assignment exists per (principal, role) pair
    - A change of scope modifies that assignment rather than adding another
    - The scope is the entire tenant or a non-empty set of scope-group GRNs
    """

    id: AssignmentId
    principal_id: PrincipalId
    role_grn: str
    scope: ScopeDescriptor

    def binds(self, role_grn: str) -> bool:
        """Check if this assignment binds the given role."""
        return self.role_grn == role_grn

    def has_scope(self, scope: ScopeDescriptor) -> bool:
        """Check if this assignment's scope is set-equal to the given one."""
        return self.scope == scope
