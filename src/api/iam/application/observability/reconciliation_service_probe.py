"""Protocol for reconciliation service observability.

Captures the lifecycle of a single reconciliation request as it moves
through resolution, validation, diffing and execution.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class ReconciliationServiceProbe(Protocol):
    """Domain probe for single-request reconciliation."""

    def request_received(self, operation: str, principal: str, target: str) -> None:
        """Record that a request entered the state machine."""
        ...

    def stage_entered(self, stage: str) -> None:
        """Record that a request moved to a new stage."""
        ...

    def request_finished(
        self, action: str | None, status: str, error_code: str | None
    ) -> None:
        """Record the terminal outcome of a request."""
        ...

    def request_failed(self, stage: str, error_code: str, error: str) -> None:
        """Record that a request failed at a stage."""
        ...

    def with_context(self, context: ObservationContext) -> ReconciliationServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultReconciliationServiceProbe:
    """Default implementation of ReconciliationServiceProbe using structlog."""

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
    ) -> DefaultReconciliationServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultReconciliationServiceProbe(logger=self._logger, context=context)

    def request_received(self, operation: str, principal: str, target: str) -> None:
        """Record that a request entered the state machine."""
        self._logger.debug(
            "reconciliation_request_received",
            operation=operation,
            principal=principal,
            target=target,
            **self._get_context_kwargs(),
        )

    def stage_entered(self, stage: str) -> None:
        """Record that a request moved to a new stage."""
        self._logger.debug(
            "reconciliation_stage_entered",
            stage=stage,
            **self._get_context_kwargs(),
        )

    def request_finished(
        self, action: str | None, status: str, error_code: str | None
    ) -> None:
        """Record the terminal outcome of a request."""
        self._logger.info(
            "reconciliation_request_finished",
            action=action,
            status=status,
            error_code=error_code,
            **self._get_context_kwargs(),
        )

    def request_failed(self, stage: str, error_code: str, error: str) -> None:
        """Record that a request failed at a stage."""
        self._logger.warning(
            "reconciliation_request_failed",
            stage=stage,
            error_code=error_code,
            error=error,
            **self._get_context_kwargs(),
        )
