"""Domain exceptions for IAM bounded context.

These exceptions represent the failure taxonomy of role-assignment
reconciliation. Lookups, validation and platform calls raise them; the
reconciliation service catches them and captures each into the result
record of the single request it belongs to. Only
SessionEstablishmentError is allowed to end a whole batch run.
"""

from __future__ import annotations


class NotFoundError(Exception):
    """Raised when a principal, role, scope group or assignment does not resolve.

    Attributes:
        entity_kind: What was being looked up (e.g. "role", "scope group")
        reference: The name or identifier that failed to resolve
    """

    def __init__(self, entity_kind: str, reference: str):
        self.entity_kind = entity_kind
        self.reference = reference
        super().__init__(f"{entity_kind} '{reference}' was not found")


class IncompatibleScopeError(Exception):
    """Raised when a workspace-level role is requested with scope groups.

    Workspace-level roles may only be bound to the entire tenant. This is
    detected before any mutating call is attempted.
    """

    def __init__(self, role_display_name: str, scope_group_names: list[str]):
        self.role_display_name = role_display_name
        self.scope_group_names = scope_group_names
        super().__init__(
            f"Role '{role_display_name}' is workspace-level and cannot be bound "
            f"to scope groups: {', '.join(scope_group_names)}"
        )


class UnauthorizedError(Exception):
    """Raised when a principal's assignments may not be mutated here.

    Principals managed by SSO/SCIM or another external identity source are
    read-only from this service's point of view.
    """

    pass


class ConflictError(Exception):
    """Raised when the platform reports the desired state already exists.

    Not actionable by the caller; reconciliation downgrades it to a warning.
    """

    def __init__(self, message: str, error_code: str | None = None):
        self.error_code = error_code
        super().__init__(message)


class TransientLookupError(Exception):
    """Raised when the platform cannot be reached or the transport fails."""

    pass


class PlatformError(Exception):
    """Raised when the platform rejects a request.

    The platform's own error code and the HTTP status are preserved verbatim
    for diagnostics.

    Attributes:
        status_code: HTTP status returned by the platform
        error_code: Platform error code from the response body, if any
    """

    def __init__(self, message: str, status_code: int, error_code: str | None = None):
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class SessionEstablishmentError(Exception):
    """Raised when an authenticated platform session cannot be established.

    Unlike every other error in this module, this terminates the whole run:
    no request in the batch can be processed without a session.
    """

    pass
