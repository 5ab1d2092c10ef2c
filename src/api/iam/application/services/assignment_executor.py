"""Assignment execution for IAM bounded context.

Carries out a classified diff with exactly one platform call and
classifies what happened into an ExecutionOutcome.
"""

from __future__ import annotations

from iam.application.observability import (
    AssignmentExecutorProbe,
    DefaultAssignmentExecutorProbe,
)
from iam.application.value_objects import ExecutionOutcome
from iam.domain.aggregates import Principal
from iam.domain.differ import AssignmentDiff
from iam.domain.value_objects import (
    AssignmentAction,
    ErrorCode,
    ReconciliationStatus,
)
from iam.ports.exceptions import (
    ConflictError,
    NotFoundError,
    PlatformError,
    TransientLookupError,
)
from iam.ports.gateway import IAssignmentWriter

ALREADY_IN_DESIRED_STATE = "already in the desired state"


class AssignmentExecutor:
    """Issues the single mutating call a diff calls for.

    NO_OP never reaches the platform. CREATE, MODIFY and REMOVE each make
    exactly one call and never retry, so a (principal, role) pair sees at
    most one mutating call per invocation.

    Outcome classification:
    - a conflict ("already exists") is a WARNING, not a failure
    - REMOVE of an assignment that is already gone is a WARNING
    - transport and platform errors are FAILED with the HTTP status and
      platform error code kept verbatim
    """

    def __init__(
        self,
        writer: IAssignmentWriter,
        probe: AssignmentExecutorProbe | None = None,
    ):
        """Initialize AssignmentExecutor with dependencies.

        Args:
            writer: Gateway for mutating assignment calls
            probe: Optional domain probe for observability
        """
        self._writer = writer
        self._probe = probe or DefaultAssignmentExecutorProbe()

    async def execute(
        self,
        diff: AssignmentDiff,
        principal: Principal,
        role_grn: str,
        role_name: str,
    ) -> ExecutionOutcome:
        """Execute a diff.

        Args:
            diff: The classified action and the state it was derived from
            principal: The resolved principal
            role_grn: Canonical name of the role being bound or removed
            role_name: Role display name (or assignment id) for messages

        Returns:
            The classified outcome; platform failures are captured, not raised
        """
        if diff.action == AssignmentAction.NO_OP:
            self._probe.assignment_unchanged(
                principal_id=principal.id.value, role_grn=role_grn
            )
            return ExecutionOutcome(
                action=diff.action,
                status=ReconciliationStatus.WARNING,
                detail=ALREADY_IN_DESIRED_STATE,
                assignment_id=diff.current.id.value if diff.current else None,
            )

        try:
            if diff.action == AssignmentAction.CREATE:
                return await self._create(diff, principal, role_grn, role_name)
            if diff.action == AssignmentAction.MODIFY:
                return await self._modify(diff, role_grn, role_name)
            return await self._remove(diff, role_grn, role_name)

        except ConflictError as e:
            self._probe.assignment_conflict(
                action=diff.action.value,
                principal_id=principal.id.value,
                role_grn=role_grn,
            )
            return ExecutionOutcome(
                action=diff.action,
                status=ReconciliationStatus.WARNING,
                detail=f"{ALREADY_IN_DESIRED_STATE} ({e})",
                assignment_id=diff.current.id.value if diff.current else None,
                error_code=ErrorCode.CONFLICT,
                http_status=409,
                platform_error_code=e.error_code,
            )

        except NotFoundError as e:
            assignment_id = diff.current.id.value if diff.current else None
            if diff.action == AssignmentAction.REMOVE:
                return ExecutionOutcome(
                    action=diff.action,
                    status=ReconciliationStatus.WARNING,
                    detail=f"assignment {assignment_id} was already removed",
                    assignment_id=assignment_id,
                    error_code=ErrorCode.NOT_FOUND,
                    http_status=404,
                )
            self._probe.mutation_failed(
                action=diff.action.value,
                principal_id=principal.id.value,
                role_grn=role_grn,
                error=str(e),
                status_code=404,
            )
            return ExecutionOutcome(
                action=diff.action,
                status=ReconciliationStatus.FAILED,
                detail=str(e),
                assignment_id=assignment_id,
                error_code=ErrorCode.NOT_FOUND,
                http_status=404,
            )

        except TransientLookupError as e:
            self._probe.mutation_failed(
                action=diff.action.value,
                principal_id=principal.id.value,
                role_grn=role_grn,
                error=str(e),
            )
            return ExecutionOutcome(
                action=diff.action,
                status=ReconciliationStatus.FAILED,
                detail=str(e),
                error_code=ErrorCode.TRANSIENT_LOOKUP_ERROR,
            )

        except PlatformError as e:
            self._probe.mutation_failed(
                action=diff.action.value,
                principal_id=principal.id.value,
                role_grn=role_grn,
                error=str(e),
                status_code=e.status_code,
            )
            return ExecutionOutcome(
                action=diff.action,
                status=ReconciliationStatus.FAILED,
                detail=str(e),
                error_code=ErrorCode.PLATFORM_ERROR,
                http_status=e.status_code,
                platform_error_code=e.error_code,
            )

    async def _create(
        self,
        diff: AssignmentDiff,
        principal: Principal,
        role_grn: str,
        role_name: str,
    ) -> ExecutionOutcome:
        assert diff.desired_scope is not None
        assignment_id = await self._writer.create_assignment(
            principal_id=principal.id,
            role_grn=role_grn,
            scope=diff.desired_scope,
        )
        self._probe.assignment_created(
            assignment_id=assignment_id.value,
            principal_id=principal.id.value,
            role_grn=role_grn,
            scope=str(diff.desired_scope),
        )
        return ExecutionOutcome(
            action=diff.action,
            status=ReconciliationStatus.COMPLETE,
            detail=f"assigned {role_name} to {principal.display_name}",
            assignment_id=assignment_id.value,
        )

    async def _modify(
        self, diff: AssignmentDiff, role_grn: str, role_name: str
    ) -> ExecutionOutcome:
        assert diff.current is not None and diff.desired_scope is not None
        await self._writer.update_assignment(
            assignment_id=diff.current.id,
            scope=diff.desired_scope,
        )
        self._probe.assignment_modified(
            assignment_id=diff.current.id.value,
            old_scope=str(diff.current.scope),
            new_scope=str(diff.desired_scope),
        )
        return ExecutionOutcome(
            action=diff.action,
            status=ReconciliationStatus.COMPLETE,
            detail=(
                f"scope of {role_name} changed from "
                f"{diff.current.scope} to {diff.desired_scope}"
            ),
            assignment_id=diff.current.id.value,
        )

    async def _remove(
        self, diff: AssignmentDiff, role_grn: str, role_name: str
    ) -> ExecutionOutcome:
        assert diff.current is not None
        await self._writer.delete_assignment(diff.current.id)
        self._probe.assignment_removed(
            assignment_id=diff.current.id.value,
            role_grn=role_grn,
        )
        return ExecutionOutcome(
            action=diff.action,
            status=ReconciliationStatus.COMPLETE,
            detail=f"removed {role_name}",
            assignment_id=diff.current.id.value,
        )
