"""Role entity for IAM context."""

from __future__ import annotations

from dataclasses import dataclass

from iam.domain.value_objects import RoleCapability
from shared_kernel.identifiers import GRN


@dataclass(frozen=True)
class Role:
    """A named permission bundle belonging to one service.

    Display names are human facing and are not unique across services;
    the GRN is globally unique.
    """

    grn: str
    display_name: str
    capability: RoleCapability

    @property
    def service(self) -> str:
        """GRN service segment, empty if the GRN cannot be parsed."""
        try:
            return GRN.parse(self.grn).service
        except ValueError:
            return ""

    def is_workspace_level(self) -> bool:
        """Check if this role may only be bound to the entire tenant."""
        return self.capability == RoleCapability.WORKSPACE_LEVEL
