"""Role/scope compatibility rules."""

from __future__ import annotations

from typing import Sequence

from iam.domain.aggregates import Role
from iam.ports.exceptions import IncompatibleScopeError


def is_scope_compatible(role: Role, scope_group_names: Sequence[str]) -> bool:
    """Check if a role may be bound to the requested scope.

    Workspace-level roles only accept the default (entire tenant) scope.
    Scopable roles accept the default scope or one or more scope groups.
    """
    if role.is_workspace_level():
        return len(scope_group_names) == 0
    return True


def ensure_scope_compatible(role: Role, scope_group_names: Sequence[str]) -> None:
    """Accept the requested scope or fail before anything is mutated.

    Args:
        role: The resolved role
        scope_group_names: Requested scope-group names, empty for the
            entire tenant

    Raises:
        IncompatibleScopeError: If a workspace-level role is requested with
            scope groups
    """
    if not is_scope_compatible(role, scope_group_names):
        raise IncompatibleScopeError(
            role_display_name=role.display_name,
            scope_group_names=list(scope_group_names),
        )
