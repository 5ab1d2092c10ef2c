"""Domain aggregates for IAM context.

Aggregates are the core business objects containing state and business logic.
They enforce invariants and business rules without depending on infrastructure.
"""

from iam.domain.aggregates.assignment import Assignment
from iam.domain.aggregates.principal import Principal
from iam.domain.aggregates.role import Role
from iam.domain.aggregates.scope_group import ScopeGroup

__all__ = [
    "Assignment",
    "Principal",
    "Role",
    "ScopeGroup",
]
