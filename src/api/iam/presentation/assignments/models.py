"""Pydantic models for role-assignment API requests and responses."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from iam.application.value_objects import (
    ReconciliationRequest,
    ReconciliationResult,
    UnassignRequest,
)
from iam.domain.value_objects import (
    AssignmentAction,
    ErrorCode,
    PrincipalKind,
    ReconciliationStatus,
)


class ReconcileAssignmentRequest(BaseModel):
    """Desired assignment for one (principal, role) pair."""

    principal: str = Field(
        ..., min_length=1, description="User email or user-group name"
    )
    role: str = Field(..., min_length=1, description="Role display name")
    scope_groups: list[str] = Field(
        default_factory=list,
        description="Scope-group names; empty binds the entire tenant",
    )
    principal_kind: PrincipalKind | None = Field(
        default=None,
        description="Overrides detection of users (email) vs user groups",
    )

    def to_request(self) -> ReconciliationRequest:
        """Convert to an application ReconciliationRequest."""
        return ReconciliationRequest(
            principal=self.principal,
            role=self.role,
            scope_groups=tuple(self.scope_groups),
            principal_kind=self.principal_kind,
        )


class UnassignAssignmentRequest(BaseModel):
    """Assignment to remove, named by role or by assignment id."""

    principal: str = Field(
        ..., min_length=1, description="User email or user-group name"
    )
    role: str | None = Field(
        default=None, min_length=1, description="Role display name"
    )
    assignment_id: str | None = Field(
        default=None, min_length=1, description="Platform assignment id"
    )
    principal_kind: PrincipalKind | None = Field(
        default=None,
        description="Overrides detection of users (email) vs user groups",
    )

    @model_validator(mode="after")
    def validate_target(self) -> "UnassignAssignmentRequest":
        """Validate exactly one of role and assignment_id is given."""
        if (self.role is None) == (self.assignment_id is None):
            raise ValueError("Exactly one of role or assignment_id must be given")
        return self

    def to_request(self) -> UnassignRequest:
        """Convert to an application UnassignRequest."""
        return UnassignRequest(
            principal=self.principal,
            role=self.role,
            assignment_id=self.assignment_id,
            principal_kind=self.principal_kind,
        )


class ReconcileBatchRequest(BaseModel):
    """Batch of desired assignments."""

    requests: list[ReconcileAssignmentRequest] = Field(..., min_length=1)


class UnassignBatchRequest(BaseModel):
    """Batch of assignments to remove."""

    requests: list[UnassignAssignmentRequest] = Field(..., min_length=1)


class ReconciliationResultResponse(BaseModel):
    """Outcome of one request."""

    principal: str
    role: str
    scope: list[str] = Field(
        ..., description="Scope-group GRNs; empty means the entire tenant"
    )
    action: AssignmentAction | None
    status: ReconciliationStatus
    detail: str
    error_code: ErrorCode | None = None
    http_status: int | None = None
    platform_error_code: str | None = None
    assignment_id: str | None = None
    previous_scope: list[str] | None = None

    @classmethod
    def from_result(cls, result: ReconciliationResult) -> ReconciliationResultResponse:
        """Convert a ReconciliationResult to an API response.

        Args:
            result: Application result record

        Returns:
            ReconciliationResultResponse
        """
        return cls(
            principal=result.principal,
            role=result.role,
            scope=list(result.scope),
            action=result.action,
            status=result.status,
            detail=result.detail,
            error_code=result.error_code,
            http_status=result.http_status,
            platform_error_code=result.platform_error_code,
            assignment_id=result.assignment_id,
            previous_scope=(
                list(result.previous_scope)
                if result.previous_scope is not None
                else None
            ),
        )


class BatchResultResponse(BaseModel):
    """Ordered results of a batch, one per submitted request."""

    results: list[ReconciliationResultResponse]
    status_counts: dict[str, int] = Field(
        default_factory=dict, description="Number of results per status"
    )

    @classmethod
    def from_results(cls, results: list[ReconciliationResult]) -> BatchResultResponse:
        """Build a batch response preserving input order."""
        counts: dict[str, int] = {}
        for result in results:
            counts[result.status.value] = counts.get(result.status.value, 0) + 1
        return cls(
            results=[ReconciliationResultResponse.from_result(r) for r in results],
            status_counts=counts,
        )
