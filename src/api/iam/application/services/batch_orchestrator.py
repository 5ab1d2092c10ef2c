"""Batch orchestration for role-assignment reconciliation.

Runs a stream of reconcile or unassign requests, isolating failures per
request and returning exactly one result per input, in input order.
"""

from __future__ import annotations

import asyncio
from collections import Counter, defaultdict
from typing import Awaitable, Callable, Iterable, Sequence, TypeVar

import structlog
from ulid import ULID

from iam.application.observability import (
    BatchOrchestratorProbe,
    DefaultBatchOrchestratorProbe,
)
from iam.application.services.identifier_resolver import infer_principal_kind
from iam.application.services.reconciliation_service import ReconciliationService
from iam.application.value_objects import (
    ReconciliationRequest,
    ReconciliationResult,
    UnassignRequest,
)
from iam.domain.value_objects import ErrorCode, PrincipalKind, ReconciliationStatus
from iam.ports.exceptions import SessionEstablishmentError
from iam.ports.gateway import ISessionProvider
from shared_kernel.observability_context import ObservationContext

RequestT = TypeVar("RequestT", ReconciliationRequest, UnassignRequest)


class CancellationToken:
    """Cooperative, request-granular cancellation.

    Requests that have not started when cancel() is called finish as
    CANCELLED. A request that has started always runs to completion, since
    the platform does no cross-request locking and an interrupted mutation
    would leave an assignment in an unknown state.
    """

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        """Request cancellation of every request not yet started."""
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._cancelled


def _cancelled_result(
    request: ReconciliationRequest | UnassignRequest,
) -> ReconciliationResult:
    if isinstance(request, ReconciliationRequest):
        role, scope = request.role, tuple(request.scope_groups)
    else:
        role, scope = request.target, ()
    return ReconciliationResult(
        principal=request.principal,
        role=role,
        scope=scope,
        action=None,
        status=ReconciliationStatus.CANCELLED,
        detail="cancelled before processing started",
        error_code=ErrorCode.CANCELLED,
    )


class BatchOrchestrator:
    """Drives reconciliation over a batch of requests.

    The session is established once up front; failing to establish it is
    the only error that ends the run. Everything else is captured in the
    failing request's own result and the batch carries on.

    With max_concurrency of 1 (the default) requests are processed strictly
    one after another. Higher values run requests as asyncio tasks bounded
    by a semaphore; requests for the same principal are serialized by a
    per-principal lock, so at most one mutating call per (principal, role)
    is ever in flight. Results keep input order either way.
    """

    def __init__(
        self,
        service: ReconciliationService,
        session: ISessionProvider,
        max_concurrency: int = 1,
        probe: BatchOrchestratorProbe | None = None,
        tenant_id: str | None = None,
    ):
        """Initialize BatchOrchestrator with dependencies.

        Args:
            service: Single-request reconciliation service
            session: Provider establishing the platform session
            max_concurrency: Maximum requests in flight at once
            probe: Optional domain probe for observability
            tenant_id: Tenant recorded in observation context

        Raises:
            ValueError: If max_concurrency is less than 1
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self._service = service
        self._session = session
        self._max_concurrency = max_concurrency
        self._probe = probe or DefaultBatchOrchestratorProbe()
        self._tenant_id = tenant_id

    async def reconcile(self, request: ReconciliationRequest) -> ReconciliationResult:
        """Reconcile a single request."""
        return (await self.reconcile_batch([request]))[0]

    async def unassign(self, request: UnassignRequest) -> ReconciliationResult:
        """Unassign a single request."""
        return (await self.unassign_batch([request]))[0]

    async def reconcile_batch(
        self,
        requests: Iterable[ReconciliationRequest],
        cancellation: CancellationToken | None = None,
    ) -> list[ReconciliationResult]:
        """Reconcile every request in the batch.

        Args:
            requests: Desired (principal, role, scope groups) entries
            cancellation: Optional token for cooperative cancellation

        Returns:
            One result per request, in input order

        Raises:
            SessionEstablishmentError: If the platform session cannot be
                established
        """
        return await self._run(
            "reconcile", list(requests), self._service.reconcile, cancellation
        )

    async def unassign_batch(
        self,
        requests: Iterable[UnassignRequest],
        cancellation: CancellationToken | None = None,
    ) -> list[ReconciliationResult]:
        """Remove the assignment named by every request in the batch.

        Args:
            requests: (principal, role or assignment id) entries
            cancellation: Optional token for cooperative cancellation

        Returns:
            One result per request, in input order

        Raises:
            SessionEstablishmentError: If the platform session cannot be
                established
        """
        return await self._run(
            "unassign", list(requests), self._service.unassign, cancellation
        )

    async def _run(
        self,
        operation: str,
        requests: Sequence[RequestT],
        handler: Callable[[RequestT], Awaitable[ReconciliationResult]],
        cancellation: CancellationToken | None,
    ) -> list[ReconciliationResult]:
        batch_id = str(ULID())
        probe = self._probe.with_context(
            ObservationContext(batch_id=batch_id, tenant_id=self._tenant_id)
        )
        probe.batch_started(
            operation=operation,
            request_count=len(requests),
            max_concurrency=self._max_concurrency,
        )

        try:
            await self._session.open_session()
        except SessionEstablishmentError as e:
            probe.batch_aborted(operation=operation, error=str(e))
            raise

        # Set when the session is lost mid-run so requests not yet started
        # are skipped.
        session_lost = CancellationToken()
        results: list[ReconciliationResult | None] = [None] * len(requests)
        semaphore = asyncio.Semaphore(self._max_concurrency)
        # Keyed by kind as well: a user and a group may share a name.
        principal_locks: defaultdict[tuple[PrincipalKind, str], asyncio.Lock] = (
            defaultdict(asyncio.Lock)
        )

        async def run_one(index: int, request: RequestT) -> None:
            lock_key = (
                request.principal_kind or infer_principal_kind(request.principal),
                request.principal,
            )
            async with principal_locks[lock_key], semaphore:
                if session_lost.is_cancelled or (
                    cancellation is not None and cancellation.is_cancelled
                ):
                    probe.request_cancelled(index=index, principal=request.principal)
                    results[index] = _cancelled_result(request)
                    return
                with structlog.contextvars.bound_contextvars(
                    batch_id=batch_id,
                    request_id=str(ULID()),
                    principal=request.principal,
                ):
                    try:
                        results[index] = await handler(request)
                    except SessionEstablishmentError:
                        session_lost.cancel()
                        raise

        try:
            if self._max_concurrency == 1:
                for index, request in enumerate(requests):
                    await run_one(index, request)
            else:
                outcomes = await asyncio.gather(
                    *(run_one(i, r) for i, r in enumerate(requests)),
                    return_exceptions=True,
                )
                for outcome in outcomes:
                    if isinstance(outcome, BaseException):
                        raise outcome
        except SessionEstablishmentError as e:
            probe.batch_aborted(operation=operation, error=str(e))
            raise

        final = [r for r in results if r is not None]
        probe.batch_completed(
            operation=operation,
            status_counts=dict(Counter(r.status.value for r in final)),
        )
        return final
