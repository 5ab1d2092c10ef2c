"""Scope group entity for IAM context."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScopeGroup:
    """A named, filtered subset of a tenant's resources.

    Only meaningful as the scope of a scopable role.
    """

    grn: str
    name: str
    region: str
