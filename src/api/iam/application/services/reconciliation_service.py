"""Role-assignment reconciliation for IAM bounded context.

Drives a single request through its stages::

    Received -> Resolving -> Validating -> Diffing -> Executing
             -> {Complete | Failed | Warning}

Every failure along the way is captured into the request's result;
nothing but a lost platform session escapes.
"""

from __future__ import annotations

from iam.application.observability import (
    DefaultReconciliationServiceProbe,
    ReconciliationServiceProbe,
)
from iam.application.services.assignment_executor import AssignmentExecutor
from iam.application.services.assignment_state_reader import AssignmentStateReader
from iam.application.services.identifier_resolver import IdentifierResolver
from iam.application.value_objects import (
    ExecutionOutcome,
    ReconciliationRequest,
    ReconciliationResult,
    UnassignRequest,
)
from iam.domain.aggregates import Assignment, Principal
from iam.domain.compatibility import ensure_scope_compatible
from iam.domain.differ import classify, classify_removal
from iam.domain.value_objects import (
    AssignmentAction,
    ErrorCode,
    ReconciliationStatus,
    RequestStage,
)
from iam.ports.exceptions import (
    ConflictError,
    IncompatibleScopeError,
    NotFoundError,
    PlatformError,
    SessionEstablishmentError,
    TransientLookupError,
    UnauthorizedError,
)


def _ensure_mutable(principal: Principal) -> None:
    if not principal.is_mutable():
        raise UnauthorizedError(
            f"{principal.display_name} is managed by {principal.auth_source}; "
            "its role assignments cannot be changed here"
        )


class ReconciliationService:
    """Application service reconciling one (principal, role) at a time.

    Resolves names, validates the principal and the requested scope, reads
    the principal's current assignments, classifies the needed action and
    executes it. Validation always finishes before the state is read, so a
    rejected request never produces a misleading NoOp and never reaches a
    mutating call.
    """

    def __init__(
        self,
        resolver: IdentifierResolver,
        state_reader: AssignmentStateReader,
        executor: AssignmentExecutor,
        probe: ReconciliationServiceProbe | None = None,
    ):
        """Initialize ReconciliationService with dependencies.

        Args:
            resolver: Resolves names into canonical identifiers
            state_reader: Reads the principal's current assignments
            executor: Issues the mutating platform call
            probe: Optional domain probe for observability
        """
        self._resolver = resolver
        self._state_reader = state_reader
        self._executor = executor
        self._probe = probe or DefaultReconciliationServiceProbe()

    def _enter(self, stage: RequestStage) -> RequestStage:
        self._probe.stage_entered(stage.value)
        return stage

    async def reconcile(self, request: ReconciliationRequest) -> ReconciliationResult:
        """Converge one principal's assignment for one role to the desired scope.

        A principal managed by an external identity source is rejected
        before its role is looked up. Scope-group names are resolved only
        after the role has been checked for compatibility, so a
        workspace-level role requested with any scope group is rejected as
        incompatible whether or not the scope group exists.

        Args:
            request: The desired (principal, role, scope groups)

        Returns:
            Exactly one result describing what happened

        Raises:
            SessionEstablishmentError: If the platform session is lost
        """
        self._probe.request_received(
            operation="reconcile", principal=request.principal, target=request.role
        )
        scope: tuple[str, ...] = tuple(request.scope_groups)
        action: AssignmentAction | None = None
        current: Assignment | None = None
        stage = RequestStage.RECEIVED

        try:
            stage = self._enter(RequestStage.RESOLVING)
            principal = await self._resolver.resolve_principal(
                request.principal, request.principal_kind
            )

            stage = self._enter(RequestStage.VALIDATING)
            _ensure_mutable(principal)
            role = await self._resolver.resolve_role(request.role)
            ensure_scope_compatible(role, request.scope_groups)
            desired_scope = await self._resolver.resolve_scope(request.scope_groups)
            scope = desired_scope.sorted_grns()

            stage = self._enter(RequestStage.DIFFING)
            current = await self._state_reader.current_for_role(principal.id, role.grn)
            diff = classify(desired_scope, current)
            action = diff.action

            stage = self._enter(RequestStage.EXECUTING)
            outcome = await self._executor.execute(
                diff, principal, role_grn=role.grn, role_name=role.display_name
            )

        except SessionEstablishmentError:
            raise
        except Exception as e:
            return self._failed(
                principal=request.principal,
                role=request.role,
                scope=scope,
                action=action,
                stage=stage,
                error=e,
            )

        return self._finished(
            principal=request.principal,
            role=request.role,
            scope=scope,
            outcome=outcome,
            previous_scope=(
                current.scope.sorted_grns()
                if current is not None and action == AssignmentAction.MODIFY
                else None
            ),
        )

    async def unassign(self, request: UnassignRequest) -> ReconciliationResult:
        """Remove one assignment from a principal.

        The assignment is named either by its role's display name or by its
        assignment id. A principal without a matching assignment by role
        yields NoOp; an unknown assignment id is NotFound.

        Args:
            request: The principal and the assignment to remove

        Returns:
            Exactly one result describing what happened

        Raises:
            SessionEstablishmentError: If the platform session is lost
        """
        self._probe.request_received(
            operation="unassign", principal=request.principal, target=request.target
        )
        action: AssignmentAction | None = None
        current: Assignment | None = None
        stage = RequestStage.RECEIVED

        try:
            stage = self._enter(RequestStage.RESOLVING)
            principal = await self._resolver.resolve_principal(
                request.principal, request.principal_kind
            )

            stage = self._enter(RequestStage.VALIDATING)
            _ensure_mutable(principal)
            role_grn: str | None = None
            if request.role is not None:
                role_grn = (await self._resolver.resolve_role(request.role)).grn

            stage = self._enter(RequestStage.DIFFING)
            if role_grn is not None:
                current = await self._state_reader.current_for_role(
                    principal.id, role_grn
                )
            else:
                current = await self._find_by_id(principal, str(request.assignment_id))
                role_grn = current.role_grn
            diff = classify_removal(current)
            action = diff.action

            stage = self._enter(RequestStage.EXECUTING)
            outcome = await self._executor.execute(
                diff, principal, role_grn=role_grn, role_name=request.target
            )

        except SessionEstablishmentError:
            raise
        except Exception as e:
            return self._failed(
                principal=request.principal,
                role=request.target,
                scope=(),
                action=action,
                stage=stage,
                error=e,
            )

        return self._finished(
            principal=request.principal,
            role=request.target,
            scope=(),
            outcome=outcome,
            previous_scope=current.scope.sorted_grns() if current is not None else None,
        )

    async def _find_by_id(self, principal: Principal, assignment_id: str) -> Assignment:
        for assignment in await self._state_reader.read(principal.id):
            if assignment.id.value == assignment_id:
                return assignment
        raise NotFoundError("assignment", assignment_id)

    def _finished(
        self,
        principal: str,
        role: str,
        scope: tuple[str, ...],
        outcome: ExecutionOutcome,
        previous_scope: tuple[str, ...] | None,
    ) -> ReconciliationResult:
        self._probe.request_finished(
            action=outcome.action.value,
            status=outcome.status.value,
            error_code=outcome.error_code.value if outcome.error_code else None,
        )
        return ReconciliationResult(
            principal=principal,
            role=role,
            scope=scope,
            action=outcome.action,
            status=outcome.status,
            detail=outcome.detail,
            error_code=outcome.error_code,
            http_status=outcome.http_status,
            platform_error_code=outcome.platform_error_code,
            assignment_id=outcome.assignment_id,
            previous_scope=previous_scope,
        )

    def _failed(
        self,
        principal: str,
        role: str,
        scope: tuple[str, ...],
        action: AssignmentAction | None,
        stage: RequestStage,
        error: Exception,
    ) -> ReconciliationResult:
        status = ReconciliationStatus.FAILED
        http_status: int | None = None
        platform_error_code: str | None = None

        if isinstance(error, NotFoundError):
            error_code = ErrorCode.NOT_FOUND
        elif isinstance(error, IncompatibleScopeError):
            error_code = ErrorCode.INCOMPATIBLE_SCOPE
        elif isinstance(error, UnauthorizedError):
            error_code = ErrorCode.UNAUTHORIZED
        elif isinstance(error, ConflictError):
            status = ReconciliationStatus.WARNING
            error_code = ErrorCode.CONFLICT
            platform_error_code = error.error_code
        elif isinstance(error, TransientLookupError):
            error_code = ErrorCode.TRANSIENT_LOOKUP_ERROR
        elif isinstance(error, PlatformError):
            error_code = ErrorCode.PLATFORM_ERROR
            http_status = error.status_code
            platform_error_code = error.error_code
        else:
            error_code = ErrorCode.UNEXPECTED_ERROR

        self._probe.request_failed(
            stage=stage.value, error_code=error_code.value, error=str(error)
        )
        self._probe.request_finished(
            action=action.value if action else None,
            status=status.value,
            error_code=error_code.value,
        )
        return ReconciliationResult(
            principal=principal,
            role=role,
            scope=scope,
            action=action,
            status=status,
            detail=str(error),
            error_code=error_code,
            http_status=http_status,
            platform_error_code=platform_error_code,
        )
