"""Deterministic tie-break for roles sharing a display name.

Role display names are not unique across services. When a lookup returns
several roles for one name, the platform's internal variant wins; failing
that, the first role by GRN is taken. The rule is a workaround for upstream
naming collisions and keys on the GRN service segment, so it has to be
revisited if the platform changes how internal roles are named.
"""

from __future__ import annotations

from typing import Sequence

from iam.domain.aggregates import Role


def is_internal_variant(role: Role, internal_service: str) -> bool:
    """Check if a role carries the internal naming convention.

    Args:
        role: The candidate role
        internal_service: GRN service segment that marks internal roles

    Returns:
        True if the role's GRN service segment matches
    """
    return bool(internal_service) and role.service == internal_service


def select_role(candidates: Sequence[Role], internal_service: str) -> Role:
    """Pick exactly one role out of candidates sharing a display name.

    Args:
        candidates: Roles with the same display name
        internal_service: GRN service segment that marks internal roles

    Returns:
        The first internal variant by GRN, otherwise the first role by GRN

    Raises:
        ValueError: If there are no candidates
    """
    if not candidates:
        raise ValueError("Cannot select a role from an empty candidate list")

    ordered = sorted(candidates, key=lambda role: role.grn)
    internal = [r for r in ordered if is_internal_variant(r, internal_service)]
    if internal:
        return internal[0]
    return ordered[0]
