"""HTTP routes for role-assignment reconciliation."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from iam.application.services import BatchOrchestrator
from iam.dependencies.reconciliation import get_batch_orchestrator
from iam.ports.exceptions import SessionEstablishmentError
from iam.presentation.assignments.models import (
    BatchResultResponse,
    ReconcileBatchRequest,
    UnassignBatchRequest,
)

router = APIRouter(
    prefix="/role-assignments",
    tags=["role-assignments"],
)


@router.post(
    "/reconcile",
    summary="Reconcile role assignments",
    description=(
        "Converge each principal's assignment for each role to the requested "
        "scope. Returns one result per request, in request order."
    ),
    responses={
        200: {"description": "Batch processed; see per-request statuses"},
        422: {"description": "Malformed request body"},
        502: {"description": "Identity platform session could not be established"},
    },
)
async def reconcile_assignments(
    request: ReconcileBatchRequest,
    orchestrator: Annotated[BatchOrchestrator, Depends(get_batch_orchestrator)],
) -> BatchResultResponse:
    """Reconcile a batch of desired assignments.

    Args:
        request: Desired (principal, role, scope groups) entries
        orchestrator: Batch orchestrator for this run

    Returns:
        BatchResultResponse with one result per entry

    Raises:
        HTTPException: 502 if the platform session cannot be established
    """
    try:
        results = await orchestrator.reconcile_batch(
            [entry.to_request() for entry in request.requests]
        )
    except SessionEstablishmentError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Identity platform session unavailable: {e}",
        ) from e

    return BatchResultResponse.from_results(results)


@router.post(
    "/unassign",
    summary="Remove role assignments",
    description=(
        "Remove each named assignment, by role display name or assignment id. "
        "Returns one result per request, in request order."
    ),
    responses={
        200: {"description": "Batch processed; see per-request statuses"},
        422: {"description": "Malformed request body"},
        502: {"description": "Identity platform session could not be established"},
    },
)
async def unassign_assignments(
    request: UnassignBatchRequest,
    orchestrator: Annotated[BatchOrchestrator, Depends(get_batch_orchestrator)],
) -> BatchResultResponse:
    """Remove a batch of assignments.

    Args:
        request: (principal, role or assignment id) entries
        orchestrator: Batch orchestrator for this run

    Returns:
        BatchResultResponse with one result per entry

    Raises:
        HTTPException: 502 if the platform session cannot be established
    """
    try:
        results = await orchestrator.unassign_batch(
            [entry.to_request() for entry in request.requests]
        )
    except SessionEstablishmentError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Identity platform session unavailable: {e}",
        ) from e

    return BatchResultResponse.from_results(results)
