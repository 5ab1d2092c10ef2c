"""Unit tests for assignment diffing.

Classification is pure, so these tests use synthetic current/desired
pairs only.
"""

from iam.domain.aggregates import Assignment
from iam.domain.differ import (
    assignments_for_role,
    classify,
    classify_removal,
    current_assignment_for_role,
)
from iam.domain.value_objects import (
    AssignmentAction,
    AssignmentId,
    PrincipalId,
    ScopeDescriptor,
)

ROLE = "grn::compute:::role/operator"
OTHER_ROLE = "grn::compute:::role/auditor"


def _assignment(
    assignment_id: str, scope: ScopeDescriptor, role_grn: str = ROLE
) -> Assignment:
    return Assignment(
        id=AssignmentId(assignment_id),
        principal_id=PrincipalId("u-1"),
        role_grn=role_grn,
        scope=scope,
    )


class TestClassify:
    """Tests for classify()."""

    def test_create_when_nothing_exists(self):
        diff = classify(ScopeDescriptor.entire_tenant(), None)
        assert diff.action == AssignmentAction.CREATE
        assert diff.current is None
        assert diff.requires_call is True

    def test_noop_when_scope_is_set_equal(self):
        current = _assignment("ra-1", ScopeDescriptor.of(["sg-a", "sg-b"]))
        diff = classify(ScopeDescriptor.of(["sg-b", "sg-a"]), current)
        assert diff.action == AssignmentAction.NO_OP
        assert diff.requires_call is False

    def test_noop_for_entire_tenant_on_both_sides(self):
        current = _assignment("ra-1", ScopeDescriptor.entire_tenant())
        diff = classify(ScopeDescriptor.entire_tenant(), current)
        assert diff.action == AssignmentAction.NO_OP

    def test_modify_when_scope_groups_differ(self):
        current = _assignment("ra-1", ScopeDescriptor.of(["sg-prod"]))
        desired = ScopeDescriptor.of(["sg-staging"])
        diff = classify(desired, current)
        assert diff.action == AssignmentAction.MODIFY
        assert diff.current == current
        assert diff.desired_scope == desired

    def test_modify_when_narrowing_from_entire_tenant(self):
        current = _assignment("ra-1", ScopeDescriptor.entire_tenant())
        diff = classify(ScopeDescriptor.of(["sg-prod"]), current)
        assert diff.action == AssignmentAction.MODIFY

    def test_modify_when_widening_to_entire_tenant(self):
        current = _assignment("ra-1", ScopeDescriptor.of(["sg-prod"]))
        diff = classify(ScopeDescriptor.entire_tenant(), current)
        assert diff.action == AssignmentAction.MODIFY

    def test_modify_when_desired_is_a_superset(self):
        current = _assignment("ra-1", ScopeDescriptor.of(["sg-a"]))
        diff = classify(ScopeDescriptor.of(["sg-a", "sg-b"]), current)
        assert diff.action == AssignmentAction.MODIFY


class TestClassifyRemoval:
    """Tests for classify_removal()."""

    def test_remove_when_assignment_exists(self):
        current = _assignment("ra-1", ScopeDescriptor.entire_tenant())
        diff = classify_removal(current)
        assert diff.action == AssignmentAction.REMOVE
        assert diff.desired_scope is None

    def test_noop_when_nothing_to_remove(self):
        diff = classify_removal(None)
        assert diff.action == AssignmentAction.NO_OP
        assert diff.requires_call is False


class TestCurrentAssignmentForRole:
    """Tests for picking the assignment that binds a role."""

    def test_ignores_other_roles(self):
        assignments = [
            _assignment("ra-1", ScopeDescriptor.entire_tenant(), OTHER_ROLE),
        ]
        assert current_assignment_for_role(assignments, ROLE) is None

    def test_returns_the_matching_assignment(self):
        match = _assignment("ra-2", ScopeDescriptor.entire_tenant())
        assignments = [
            _assignment("ra-1", ScopeDescriptor.entire_tenant(), OTHER_ROLE),
            match,
        ]
        assert current_assignment_for_role(assignments, ROLE) == match

    def test_lowest_id_wins_when_platform_reports_duplicates(self):
        assignments = [
            _assignment("ra-9", ScopeDescriptor.of(["sg-b"])),
            _assignment("ra-3", ScopeDescriptor.of(["sg-a"])),
        ]
        picked = current_assignment_for_role(assignments, ROLE)
        assert picked is not None
        assert picked.id.value == "ra-3"
        assert [a.id.value for a in assignments_for_role(assignments, ROLE)] == [
            "ra-3",
            "ra-9",
        ]
