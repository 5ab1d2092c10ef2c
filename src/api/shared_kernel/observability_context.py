"""Observation context for domain-oriented observability.

Observation contexts collect and manage contextual metadata for instrumentation,
following the Domain Oriented Observability pattern.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable context containing metadata for observability.

    Captures request-scoped and domain-relevant metadata that should be
    included with all instrumentation events. This enables correlation
    of events across a batch run and provides business context for debugging.

    Attributes:
        request_id: Unique identifier for the current reconciliation request.
        batch_id: Identifier of the batch run the request belongs to.
        tenant_id: Multi-tenant identifier (if applicable).
        principal: Principal reference being reconciled (if applicable).
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(
            batch_id="01J...",
            tenant_id="acme",
        )
        probe = DefaultReconciliationServiceProbe().with_context(context)
    """

    request_id: str | None = None
    batch_id: str | None = None
    tenant_id: str | None = None
    principal: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.request_id is not None:
            result["request_id"] = self.request_id
        if self.batch_id is not None:
            result["batch_id"] = self.batch_id
        if self.tenant_id is not None:
            result["tenant_id"] = self.tenant_id
        if self.principal is not None:
            result["principal"] = self.principal
        result.update(self.extra)
        return result

    def with_request(self, request_id: str, principal: str) -> ObservationContext:
        """Create a new context bound to a single reconciliation request."""
        return ObservationContext(
            request_id=request_id,
            batch_id=self.batch_id,
            tenant_id=self.tenant_id,
            principal=principal,
            extra=self.extra,
        )

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        new_extra = {**self.extra, **kwargs}
        return ObservationContext(
            request_id=self.request_id,
            batch_id=self.batch_id,
            tenant_id=self.tenant_id,
            principal=self.principal,
            extra=new_extra,
        )
