"""Protocol for assignment executor observability.

Every mutating platform call made during reconciliation is recorded here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class AssignmentExecutorProbe(Protocol):
    """Domain probe for assignment mutations."""

    def assignment_created(
        self, assignment_id: str, principal_id: str, role_grn: str, scope: str
    ) -> None:
        """Record that an assignment was created."""
        ...

    def assignment_modified(
        self, assignment_id: str, old_scope: str, new_scope: str
    ) -> None:
        """Record that an assignment's scope was replaced."""
        ...

    def assignment_removed(self, assignment_id: str, role_grn: str) -> None:
        """Record that an assignment was deleted."""
        ...

    def assignment_unchanged(self, principal_id: str, role_grn: str) -> None:
        """Record that no call was needed."""
        ...

    def assignment_conflict(self, action: str, principal_id: str, role_grn: str) -> None:
        """Record that the platform reported the desired state already exists."""
        ...

    def mutation_failed(
        self,
        action: str,
        principal_id: str,
        role_grn: str,
        error: str,
        status_code: int | None = None,
    ) -> None:
        """Record that a mutating call failed."""
        ...

    def with_context(self, context: ObservationContext) -> AssignmentExecutorProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultAssignmentExecutorProbe:
    """Default implementation of AssignmentExecutorProbe using structlog."""

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
    ) -> DefaultAssignmentExecutorProbe:
        """Create a new probe with observation context bound."""
        return DefaultAssignmentExecutorProbe(logger=self._logger, context=context)

    def assignment_created(
        self, assignment_id: str, principal_id: str, role_grn: str, scope: str
    ) -> None:
        """Record that an assignment was created."""
        self._logger.info(
            "assignment_created",
            assignment_id=assignment_id,
            principal_id=principal_id,
            role_grn=role_grn,
            scope=scope,
            **self._get_context_kwargs(),
        )

    def assignment_modified(
        self, assignment_id: str, old_scope: str, new_scope: str
    ) -> None:
        """Record that an assignment's scope was replaced."""
        self._logger.info(
            "assignment_modified",
            assignment_id=assignment_id,
            old_scope=old_scope,
            new_scope=new_scope,
            **self._get_context_kwargs(),
        )

    def assignment_removed(self, assignment_id: str, role_grn: str) -> None:
        """Record that an assignment was deleted."""
        self._logger.info(
            "assignment_removed",
            assignment_id=assignment_id,
            role_grn=role_grn,
            **self._get_context_kwargs(),
        )

    def assignment_unchanged(self, principal_id: str, role_grn: str) -> None:
        """Record that no call was needed."""
        self._logger.info(
            "assignment_unchanged",
            principal_id=principal_id,
            role_grn=role_grn,
            **self._get_context_kwargs(),
        )

    def assignment_conflict(self, action: str, principal_id: str, role_grn: str) -> None:
        """Record that the platform reported the desired state already exists."""
        self._logger.warning(
            "assignment_conflict",
            action=action,
            principal_id=principal_id,
            role_grn=role_grn,
            **self._get_context_kwargs(),
        )

    def mutation_failed(
        self,
        action: str,
        principal_id: str,
        role_grn: str,
        error: str,
        status_code: int | None = None,
    ) -> None:
        """Record that a mutating call failed."""
        self._logger.error(
            "assignment_mutation_failed",
            action=action,
            principal_id=principal_id,
            role_grn=role_grn,
            error=error,
            status_code=status_code,
            **self._get_context_kwargs(),
        )
