"""Ports (interfaces) for IAM bounded context.

Ports define the contracts for the identity platform (directory lookups,
assignment mutations, session) without specifying implementation
details. This allows for dependency inversion and makes the domain and
application layers independent of infrastructure.
"""

from iam.ports.exceptions import (
    ConflictError,
    IncompatibleScopeError,
    NotFoundError,
    PlatformError,
    SessionEstablishmentError,
    TransientLookupError,
    UnauthorizedError,
)
from iam.ports.gateway import IAssignmentWriter, IDirectoryGateway, ISessionProvider

__all__ = [
    "IDirectoryGateway",
    "IAssignmentWriter",
    "ISessionProvider",
    "NotFoundError",
    "IncompatibleScopeError",
    "UnauthorizedError",
    "ConflictError",
    "TransientLookupError",
    "PlatformError",
    "SessionEstablishmentError",
]
