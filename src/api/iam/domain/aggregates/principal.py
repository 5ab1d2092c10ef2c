"""Principal aggregate for IAM context."""

from __future__ import annotations

from dataclasses import dataclass

from iam.domain.value_objects import AuthSource, PrincipalId, PrincipalKind


@dataclass(frozen=True)
class Principal:
    """A user or user group that can hold role assignments.

    Principals are created and destroyed by the directory; this context only
    reads and references them. Only locally managed principals may have
    their assignments changed here.
    """

    id: PrincipalId
    kind: PrincipalKind
    display_name: str
    auth_source: AuthSource

    def __str__(self) -> str:
        """Return string representation."""
        return f"Principal({self.kind}:{self.display_name})"

    def __eq__(self, other: object) -> bool:
        """Principals are equal if they have the same ID (identity-based equality)."""
        if not isinstance(other, Principal):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        """Hash based on ID for use in sets and dicts."""
        return hash(self.id)

    def is_mutable(self) -> bool:
        """Check if assignments on this principal may be created or changed."""
        return self.auth_source.is_locally_managed()
