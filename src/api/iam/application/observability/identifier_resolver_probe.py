"""Protocol for identifier resolution observability.

Defines the interface for domain probes that capture how human-readable
names were turned into canonical identifiers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class IdentifierResolverProbe(Protocol):
    """Domain probe for identifier resolution."""

    def principal_resolved(
        self, reference: str, principal_id: str, auth_source: str
    ) -> None:
        """Record that a principal reference was resolved."""
        ...

    def role_resolved(self, display_name: str, grn: str, candidate_count: int) -> None:
        """Record that a role display name was resolved."""
        ...

    def role_name_collision(
        self, display_name: str, candidates: list[str], selected: str
    ) -> None:
        """Record that several roles shared a display name and one was picked."""
        ...

    def scope_group_resolved(self, name: str, grn: str) -> None:
        """Record that a scope-group name was resolved."""
        ...

    def lookup_cache_hit(self, entity_kind: str, reference: str) -> None:
        """Record that a lookup was served from the batch cache."""
        ...

    def resolution_failed(self, entity_kind: str, reference: str) -> None:
        """Record that a name did not resolve."""
        ...

    def with_context(self, context: ObservationContext) -> IdentifierResolverProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultIdentifierResolverProbe:
    """Default implementation of IdentifierResolverProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(
        self, context: ObservationContext
    ) -> DefaultIdentifierResolverProbe:
        """Create a new probe with observation context bound."""
        return DefaultIdentifierResolverProbe(logger=self._logger, context=context)

    def principal_resolved(
        self, reference: str, principal_id: str, auth_source: str
    ) -> None:
        """Record that a principal reference was resolved."""
        self._logger.debug(
            "principal_resolved",
            reference=reference,
            principal_id=principal_id,
            auth_source=auth_source,
            **self._get_context_kwargs(),
        )

    def role_resolved(self, display_name: str, grn: str, candidate_count: int) -> None:
        """Record that a role display name was resolved."""
        self._logger.debug(
            "role_resolved",
            display_name=display_name,
            grn=grn,
            candidate_count=candidate_count,
            **self._get_context_kwargs(),
        )

    def role_name_collision(
        self, display_name: str, candidates: list[str], selected: str
    ) -> None:
        """Record that several roles shared a display name and one was picked."""
        self._logger.warning(
            "role_name_collision",
            display_name=display_name,
            candidates=candidates,
            selected=selected,
            **self._get_context_kwargs(),
        )

    def scope_group_resolved(self, name: str, grn: str) -> None:
        """Record that a scope-group name was resolved."""
        self._logger.debug(
            "scope_group_resolved",
            name=name,
            grn=grn,
            **self._get_context_kwargs(),
        )

    def lookup_cache_hit(self, entity_kind: str, reference: str) -> None:
        """Record that a lookup was served from the batch cache."""
        self._logger.debug(
            "lookup_cache_hit",
            entity_kind=entity_kind,
            reference=reference,
            **self._get_context_kwargs(),
        )

    def resolution_failed(self, entity_kind: str, reference: str) -> None:
        """Record that a name did not resolve."""
        self._logger.warning(
            "resolution_failed",
            entity_kind=entity_kind,
            reference=reference,
            **self._get_context_kwargs(),
        )
