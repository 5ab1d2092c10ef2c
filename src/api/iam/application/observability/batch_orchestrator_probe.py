"""Protocol for batch orchestration observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class BatchOrchestratorProbe(Protocol):
    """Domain probe for batch runs."""

    def batch_started(self, operation: str, request_count: int, max_concurrency: int) -> None:
        """Record that a batch run started."""
        ...

    def batch_completed(self, operation: str, status_counts: dict[str, int]) -> None:
        """Record that every request in a batch produced a result."""
        ...

    def batch_aborted(self, operation: str, error: str) -> None:
        """Record that a batch could not run at all."""
        ...

    def request_cancelled(self, index: int, principal: str) -> None:
        """Record that a request was skipped because of cancellation."""
        ...

    def with_context(self, context: ObservationContext) -> BatchOrchestratorProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultBatchOrchestratorProbe:
    """Default implementation of BatchOrchestratorProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultBatchOrchestratorProbe:
        """Create a new probe with observation context bound."""
        return DefaultBatchOrchestratorProbe(logger=self._logger, context=context)

    def batch_started(self, operation: str, request_count: int, max_concurrency: int) -> None:
        """Record that a batch run started."""
        self._logger.info(
            "batch_started",
            operation=operation,
            request_count=request_count,
            max_concurrency=max_concurrency,
            **self._get_context_kwargs(),
        )

    def batch_completed(self, operation: str, status_counts: dict[str, int]) -> None:
        """Record that every request in a batch produced a result."""
        self._logger.info(
            "batch_completed",
            operation=operation,
            status_counts=status_counts,
            **self._get_context_kwargs(),
        )

    def batch_aborted(self, operation: str, error: str) -> None:
        """Record that a batch could not run at all."""
        self._logger.error(
            "batch_aborted",
            operation=operation,
            error=error,
            **self._get_context_kwargs(),
        )

    def request_cancelled(self, index: int, principal: str) -> None:
        """Record that a request was skipped because of cancellation."""
        self._logger.info(
            "request_cancelled",
            index=index,
            principal=principal,
            **self._get_context_kwargs(),
        )
