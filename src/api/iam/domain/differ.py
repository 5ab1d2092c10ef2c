"""Assignment diffing.

Classifies a desired (role, scope) against the principal's current
assignment for that role. Everything here is pure: no I/O and no side
effects, so it can be exercised with synthetic current/desired pairs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from iam.domain.aggregates import Assignment
from iam.domain.value_objects import AssignmentAction, ScopeDescriptor


@dataclass(frozen=True)
class AssignmentDiff:
    """Outcome of comparing desired state to current state.

    Attributes:
        action: The single action needed to converge
        current: The existing assignment for the role, if any
        desired_scope: The scope being converged to (None for removals)
    """

    action: AssignmentAction
    current: Assignment | None
    desired_scope: ScopeDescriptor | None

    @property
    def requires_call(self) -> bool:
        """Check if converging needs a mutating platform call."""
        return self.action != AssignmentAction.NO_OP


def assignments_for_role(
    assignments: Iterable[Assignment], role_grn: str
) -> list[Assignment]:
    """Return the assignments binding role_grn, ordered by assignment id."""
    return sorted(
        (a for a in assignments if a.binds(role_grn)),
        key=lambda a: a.id.value,
    )


def current_assignment_for_role(
    assignments: Iterable[Assignment], role_grn: str
) -> Assignment | None:
    """Return the assignment binding role_grn, if any.

    The platform keeps at most one assignment per (principal, role). Should
    it ever report more, the one with the lowest id is used so the choice is
    stable between runs.
    """
    matching = assignments_for_role(assignments, role_grn)
    return matching[0] if matching else None


def classify(
    desired_scope: ScopeDescriptor, current: Assignment | None
) -> AssignmentDiff:
    """Classify a grant request.

    Args:
        desired_scope: The scope the role should be bound to
        current: The principal's existing assignment for the role, if any

    Returns:
        CREATE if nothing exists, NO_OP if the existing scope is set-equal,
        MODIFY otherwise
    """
    if current is None:
        action = AssignmentAction.CREATE
    elif current.has_scope(desired_scope):
        action = AssignmentAction.NO_OP
    else:
        action = AssignmentAction.MODIFY

    return AssignmentDiff(action=action, current=current, desired_scope=desired_scope)


def classify_removal(current: Assignment | None) -> AssignmentDiff:
    """Classify a removal request.

    Args:
        current: The assignment the caller wants gone, if it exists

    Returns:
        REMOVE if the assignment exists, NO_OP otherwise
    """
    action = AssignmentAction.NO_OP if current is None else AssignmentAction.REMOVE
    return AssignmentDiff(action=action, current=current, desired_scope=None)
