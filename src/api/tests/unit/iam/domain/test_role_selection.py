"""Unit tests for the duplicate role display name tie-break."""

import random

import pytest

from iam.domain.aggregates import Role
from iam.domain.role_selection import is_internal_variant, select_role
from iam.domain.value_objects import RoleCapability


def _role(grn: str) -> Role:
    return Role(grn=grn, display_name="Viewer", capability=RoleCapability.SCOPABLE)


BILLING = _role("grn::billing:::role/viewer")
INTERNAL = _role("grn::internal:::role/viewer")
STORAGE = _role("grn::storage:::role/viewer")


class TestIsInternalVariant:
    """Tests for is_internal_variant()."""

    def test_matches_service_segment(self):
        assert is_internal_variant(INTERNAL, "internal") is True
        assert is_internal_variant(BILLING, "internal") is False

    def test_empty_convention_matches_nothing(self):
        assert is_internal_variant(INTERNAL, "") is False

    def test_unparseable_grn_is_not_internal(self):
        assert is_internal_variant(_role("internal-viewer"), "internal") is False


class TestSelectRole:
    """Tests for select_role()."""

    def test_prefers_internal_variant(self):
        assert select_role([BILLING, INTERNAL, STORAGE], "internal") == INTERNAL

    def test_falls_back_to_first_by_grn(self):
        assert select_role([STORAGE, BILLING], "internal") == BILLING

    def test_single_candidate(self):
        assert select_role([STORAGE], "internal") == STORAGE

    def test_selection_is_independent_of_input_order(self):
        candidates = [BILLING, INTERNAL, STORAGE]
        picks = set()
        for seed in range(10):
            shuffled = candidates[:]
            random.Random(seed).shuffle(shuffled)
            picks.add(select_role(shuffled, "internal").grn)
        assert picks == {INTERNAL.grn}

    def test_configurable_convention(self):
        assert select_role([BILLING, INTERNAL, STORAGE], "storage") == STORAGE

    def test_rejects_empty_candidates(self):
        with pytest.raises(ValueError):
            select_role([], "internal")
