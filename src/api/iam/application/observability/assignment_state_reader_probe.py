"""Protocol for assignment state reader observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class AssignmentStateReaderProbe(Protocol):
    """Domain probe for reading a principal's current assignments."""

    def assignments_read(self, principal_id: str, count: int) -> None:
        """Record that current assignments were read and normalized."""
        ...

    def duplicate_assignments_detected(
        self, principal_id: str, role_grn: str, assignment_ids: list[str]
    ) -> None:
        """Record that the platform reported several assignments for one role."""
        ...

    def assignment_read_failed(self, principal_id: str, error: str) -> None:
        """Record that reading current assignments failed."""
        ...

    def with_context(self, context: ObservationContext) -> AssignmentStateReaderProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultAssignmentStateReaderProbe:
    """Default implementation of AssignmentStateReaderProbe using structlog."""

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
    ) -> DefaultAssignmentStateReaderProbe:
        """Create a new probe with observation context bound."""
        return DefaultAssignmentStateReaderProbe(logger=self._logger, context=context)

    def assignments_read(self, principal_id: str, count: int) -> None:
        """Record that current assignments were read and normalized."""
        self._logger.debug(
            "assignments_read",
            principal_id=principal_id,
            count=count,
            **self._get_context_kwargs(),
        )

    def duplicate_assignments_detected(
        self, principal_id: str, role_grn: str, assignment_ids: list[str]
    ) -> None:
        """Record that the platform reported several assignments for one role."""
        self._logger.warning(
            "duplicate_assignments_detected",
            principal_id=principal_id,
            role_grn=role_grn,
            assignment_ids=assignment_ids,
            **self._get_context_kwargs(),
        )

    def assignment_read_failed(self, principal_id: str, error: str) -> None:
        """Record that reading current assignments failed."""
        self._logger.error(
            "assignment_read_failed",
            principal_id=principal_id,
            error=error,
            **self._get_context_kwargs(),
        )
