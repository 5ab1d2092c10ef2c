"""Unit tests for ReconciliationService.

Runs requests end to end against the in-memory platform and checks the
resulting records and the number of mutating calls made.
"""

import pytest
from unittest.mock import create_autospec

from iam.application.observability import ReconciliationServiceProbe
from iam.application.services import ReconciliationService
from iam.application.services.assignment_executor import ALREADY_IN_DESIRED_STATE
from iam.application.value_objects import ReconciliationRequest, UnassignRequest
from iam.domain.value_objects import (
    AssignmentAction,
    ErrorCode,
    PrincipalKind,
    ReconciliationStatus,
)
from iam.ports.exceptions import (
    ConflictError,
    NotFoundError,
    PlatformError,
    SessionEstablishmentError,
    TransientLookupError,
)

JANE = "jane@example.com"


@pytest.fixture
def service(make_service) -> ReconciliationService:
    return make_service()


class TestReconcileScenarios:
    """Scenarios for a single principal and role."""

    @pytest.mark.asyncio
    async def test_create_for_principal_without_assignments(
        self, service, platform, operator_grn
    ):
        result = await service.reconcile(ReconciliationRequest(JANE, "Operator"))

        assert result.action == AssignmentAction.CREATE
        assert result.status == ReconciliationStatus.COMPLETE
        assert result.scope == ()
        assert result.error_code is None
        [record] = platform.held_by("u-jane")
        assert record.role_grn == operator_grn
        assert record.entire_tenant is True
        assert result.assignment_id == record.id

    @pytest.mark.asyncio
    async def test_noop_when_scope_already_matches(
        self, service, platform, operator_grn, scope_grn
    ):
        platform.grant("u-jane", operator_grn, ("sg-prod",))

        result = await service.reconcile(
            ReconciliationRequest(JANE, "Operator", ("Prod",))
        )

        assert result.action == AssignmentAction.NO_OP
        assert result.status == ReconciliationStatus.WARNING
        assert result.detail == ALREADY_IN_DESIRED_STATE
        assert result.scope == (scope_grn("sg-prod"),)
        assert platform.mutating_calls == []

    @pytest.mark.asyncio
    async def test_modify_replaces_scope(self, service, platform, operator_grn, scope_grn):
        assignment_id = platform.grant("u-jane", operator_grn, ("sg-prod",))

        result = await service.reconcile(
            ReconciliationRequest(JANE, "Operator", ("Staging",))
        )

        assert result.action == AssignmentAction.MODIFY
        assert result.status == ReconciliationStatus.COMPLETE
        assert result.previous_scope == (scope_grn("sg-prod"),)
        assert result.scope == (scope_grn("sg-staging"),)
        assert platform.mutating_calls == [("update", assignment_id)]
        [record] = platform.held_by("u-jane")
        assert record.id == assignment_id
        assert [sg.grn for sg in record.scope_groups] == [scope_grn("sg-staging")]

    @pytest.mark.asyncio
    async def test_user_group_principal(self, service, platform):
        result = await service.reconcile(
            ReconciliationRequest("Platform Team", "Operator", ("Prod",))
        )

        assert result.status == ReconciliationStatus.COMPLETE
        assert len(platform.held_by("g-platform")) == 1

    @pytest.mark.asyncio
    async def test_principal_kind_hint_is_used(self, service, platform):
        platform.add_principal(
            "g-mail", "ops@example.com", kind=PrincipalKind.USER_GROUP
        )

        result = await service.reconcile(
            ReconciliationRequest(
                "ops@example.com",
                "Operator",
                principal_kind=PrincipalKind.USER_GROUP,
            )
        )

        assert result.status == ReconciliationStatus.COMPLETE
        assert len(platform.held_by("g-mail")) == 1


class TestReconcileProperties:
    """Idempotence, ordering and compatibility properties."""

    @pytest.mark.asyncio
    async def test_reconcile_is_idempotent(self, make_service, platform):
        request = ReconciliationRequest(JANE, "Operator", ("Prod",))

        first = await make_service().reconcile(request)
        second = await make_service().reconcile(request)

        assert first.action == AssignmentAction.CREATE
        assert second.action == AssignmentAction.NO_OP
        assert second.status == ReconciliationStatus.WARNING
        assert len(platform.held_by("u-jane")) == 1
        assert len(platform.mutating_calls) == 1

    @pytest.mark.asyncio
    async def test_modify_then_repeat_is_noop(self, service, platform, operator_grn):
        platform.grant("u-jane", operator_grn, ("sg-prod",))
        request = ReconciliationRequest(JANE, "Operator", ("Staging",))

        first = await service.reconcile(request)
        second = await service.reconcile(request)

        assert first.action == AssignmentAction.MODIFY
        assert second.action == AssignmentAction.NO_OP
        assert len(platform.mutating_calls) == 1

    @pytest.mark.asyncio
    async def test_scope_order_does_not_matter(self, service, platform):
        first = await service.reconcile(
            ReconciliationRequest(JANE, "Operator", ("A", "B"))
        )
        second = await service.reconcile(
            ReconciliationRequest(JANE, "Operator", ("B", "A"))
        )

        assert first.action == AssignmentAction.CREATE
        assert second.action == AssignmentAction.NO_OP
        assert first.scope == second.scope

    @pytest.mark.asyncio
    @pytest.mark.parametrize("scope", [("Prod",), ("Prod", "Staging"), ("Nope",)])
    async def test_workspace_level_role_with_scope_never_mutates(
        self, service, platform, scope
    ):
        result = await service.reconcile(
            ReconciliationRequest(JANE, "Tenant Admin", scope)
        )

        assert result.status == ReconciliationStatus.FAILED
        assert result.error_code == ErrorCode.INCOMPATIBLE_SCOPE
        assert result.action is None
        assert platform.mutating_calls == []
        assert not [c for c in platform.lookup_calls if c[0] == "assignments"]

    @pytest.mark.asyncio
    async def test_workspace_level_role_for_entire_tenant(self, service):
        result = await service.reconcile(ReconciliationRequest(JANE, "Tenant Admin"))

        assert result.action == AssignmentAction.CREATE
        assert result.status == ReconciliationStatus.COMPLETE


class TestReconcileFailures:
    """Failures are captured into the result, never raised."""

    @pytest.mark.asyncio
    async def test_unknown_principal(self, service, platform):
        result = await service.reconcile(
            ReconciliationRequest("ghost@example.com", "Operator")
        )

        assert result.status == ReconciliationStatus.FAILED
        assert result.error_code == ErrorCode.NOT_FOUND
        assert "ghost@example.com" in result.detail
        assert platform.mutating_calls == []

    @pytest.mark.asyncio
    async def test_unknown_role(self, service):
        result = await service.reconcile(ReconciliationRequest(JANE, "Nope"))

        assert result.error_code == ErrorCode.NOT_FOUND
        assert result.role == "Nope"

    @pytest.mark.asyncio
    async def test_unknown_scope_group_is_named(self, service, platform):
        result = await service.reconcile(
            ReconciliationRequest(JANE, "Operator", ("Prod", "Nope"))
        )

        assert result.error_code == ErrorCode.NOT_FOUND
        assert "Nope" in result.detail
        assert result.scope == ("Prod", "Nope")
        assert platform.mutating_calls == []

    @pytest.mark.asyncio
    async def test_sso_principal_is_unauthorized(self, service, platform):
        result = await service.reconcile(
            ReconciliationRequest("sso.user@example.com", "Operator", ("Prod",))
        )

        assert result.status == ReconciliationStatus.FAILED
        assert result.error_code == ErrorCode.UNAUTHORIZED
        assert platform.mutating_calls == []

    @pytest.mark.asyncio
    async def test_sso_principal_is_rejected_before_role_lookup(
        self, service, platform
    ):
        result = await service.reconcile(
            ReconciliationRequest("sso.user@example.com", "No Such Role")
        )

        assert result.status == ReconciliationStatus.FAILED
        assert result.error_code == ErrorCode.UNAUTHORIZED
        assert ("role", "No Such Role") not in platform.lookup_calls
        assert platform.mutating_calls == []

    @pytest.mark.asyncio
    async def test_transient_lookup_error(self, service, platform):
        platform.lookup_errors["assignments"] = TransientLookupError("timeout")

        result = await service.reconcile(ReconciliationRequest(JANE, "Operator"))

        assert result.status == ReconciliationStatus.FAILED
        assert result.error_code == ErrorCode.TRANSIENT_LOOKUP_ERROR
        assert result.action is None

    @pytest.mark.asyncio
    async def test_platform_error_on_lookup_keeps_diagnostics(self, service, platform):
        platform.lookup_errors["assignments"] = PlatformError(
            "bad gateway", status_code=502, error_code="UPSTREAM"
        )

        result = await service.reconcile(ReconciliationRequest(JANE, "Operator"))

        assert result.error_code == ErrorCode.PLATFORM_ERROR
        assert result.http_status == 502
        assert result.platform_error_code == "UPSTREAM"

    @pytest.mark.asyncio
    async def test_create_conflict_is_warning(self, service, platform):
        platform.fail_next["create"] = ConflictError("exists", error_code="DUP")

        result = await service.reconcile(ReconciliationRequest(JANE, "Operator"))

        assert result.action == AssignmentAction.CREATE
        assert result.status == ReconciliationStatus.WARNING
        assert result.error_code == ErrorCode.CONFLICT

    @pytest.mark.asyncio
    async def test_unexpected_error_is_captured(self, service, platform):
        platform.lookup_errors["principal"] = RuntimeError("bug")

        result = await service.reconcile(ReconciliationRequest(JANE, "Operator"))

        assert result.status == ReconciliationStatus.FAILED
        assert result.error_code == ErrorCode.UNEXPECTED_ERROR

    @pytest.mark.asyncio
    async def test_session_loss_escapes(self, service, platform):
        platform.lookup_errors["principal"] = SessionEstablishmentError("expired")

        with pytest.raises(SessionEstablishmentError):
            await service.reconcile(ReconciliationRequest(JANE, "Operator"))


class TestUnassign:
    """Tests for unassign()."""

    @pytest.mark.asyncio
    async def test_unassign_by_role(self, service, platform, operator_grn, scope_grn):
        assignment_id = platform.grant("u-jane", operator_grn, ("sg-prod",))

        result = await service.unassign(UnassignRequest(JANE, role="Operator"))

        assert result.action == AssignmentAction.REMOVE
        assert result.status == ReconciliationStatus.COMPLETE
        assert result.assignment_id == assignment_id
        assert result.previous_scope == (scope_grn("sg-prod"),)
        assert platform.held_by("u-jane") == []

    @pytest.mark.asyncio
    async def test_unassign_by_assignment_id(self, service, platform, operator_grn):
        assignment_id = platform.grant("u-jane", operator_grn)

        result = await service.unassign(
            UnassignRequest(JANE, assignment_id=assignment_id)
        )

        assert result.action == AssignmentAction.REMOVE
        assert result.status == ReconciliationStatus.COMPLETE
        assert result.role == assignment_id
        assert platform.mutating_calls == [("delete", assignment_id)]

    @pytest.mark.asyncio
    async def test_unassign_without_assignment_is_noop(self, service, platform):
        result = await service.unassign(UnassignRequest(JANE, role="Operator"))

        assert result.action == AssignmentAction.NO_OP
        assert result.status == ReconciliationStatus.WARNING
        assert platform.mutating_calls == []

    @pytest.mark.asyncio
    async def test_unknown_assignment_id_is_not_found(self, service, platform):
        result = await service.unassign(UnassignRequest(JANE, assignment_id="ra-x"))

        assert result.status == ReconciliationStatus.FAILED
        assert result.error_code == ErrorCode.NOT_FOUND
        assert platform.mutating_calls == []

    @pytest.mark.asyncio
    async def test_other_principals_assignment_id_is_not_found(
        self, service, platform, operator_grn
    ):
        assignment_id = platform.grant("g-platform", operator_grn)

        result = await service.unassign(
            UnassignRequest(JANE, assignment_id=assignment_id)
        )

        assert result.error_code == ErrorCode.NOT_FOUND
        assert len(platform.held_by("g-platform")) == 1

    @pytest.mark.asyncio
    async def test_sso_principal_is_unauthorized(self, service, platform, operator_grn):
        platform.grant("u-sso", operator_grn)

        result = await service.unassign(
            UnassignRequest("sso.user@example.com", role="Operator")
        )

        assert result.error_code == ErrorCode.UNAUTHORIZED
        assert platform.mutating_calls == []
        assert len(platform.held_by("u-sso")) == 1

    @pytest.mark.asyncio
    async def test_sso_principal_is_rejected_before_role_lookup(
        self, service, platform
    ):
        result = await service.unassign(
            UnassignRequest("sso.user@example.com", role="No Such Role")
        )

        assert result.status == ReconciliationStatus.FAILED
        assert result.error_code == ErrorCode.UNAUTHORIZED
        assert ("role", "No Such Role") not in platform.lookup_calls
        assert platform.mutating_calls == []

    @pytest.mark.asyncio
    async def test_already_removed_between_read_and_delete(
        self, service, platform, operator_grn
    ):
        platform.grant("u-jane", operator_grn)
        platform.fail_next["delete"] = NotFoundError("assignment", "ra-0001")

        result = await service.unassign(UnassignRequest(JANE, role="Operator"))

        assert result.action == AssignmentAction.REMOVE
        assert result.status == ReconciliationStatus.WARNING
        assert result.error_code == ErrorCode.NOT_FOUND

    def test_request_requires_exactly_one_target(self):
        with pytest.raises(ValueError):
            UnassignRequest(JANE)
        with pytest.raises(ValueError):
            UnassignRequest(JANE, role="Operator", assignment_id="ra-1")


class TestProbeEvents:
    """The service reports stages and outcomes to its probe."""

    @pytest.mark.asyncio
    async def test_stages_are_reported_in_order(
        self, platform, platform_context
    ):
        from iam.application.services import (
            AssignmentExecutor,
            AssignmentStateReader,
            IdentifierResolver,
        )

        probe = create_autospec(ReconciliationServiceProbe, instance=True)
        service = ReconciliationService(
            resolver=IdentifierResolver(gateway=platform, context=platform_context),
            state_reader=AssignmentStateReader(gateway=platform, context=platform_context),
            executor=AssignmentExecutor(writer=platform),
            probe=probe,
        )

        await service.reconcile(ReconciliationRequest(JANE, "Operator"))

        stages = [c.args[0] for c in probe.stage_entered.call_args_list]
        assert stages == ["resolving", "validating", "diffing", "executing"]
        probe.request_finished.assert_called_once_with(
            action="Create", status="Complete", error_code=None
        )

    @pytest.mark.asyncio
    async def test_failure_reports_stage(self, platform, platform_context):
        from iam.application.services import (
            AssignmentExecutor,
            AssignmentStateReader,
            IdentifierResolver,
        )

        probe = create_autospec(ReconciliationServiceProbe, instance=True)
        service = ReconciliationService(
            resolver=IdentifierResolver(gateway=platform, context=platform_context),
            state_reader=AssignmentStateReader(gateway=platform, context=platform_context),
            executor=AssignmentExecutor(writer=platform),
            probe=probe,
        )

        await service.reconcile(
            ReconciliationRequest("sso.user@example.com", "Operator")
        )

        probe.request_failed.assert_called_once()
        assert probe.request_failed.call_args.kwargs["stage"] == "validating"
        assert probe.request_failed.call_args.kwargs["error_code"] == "Unauthorized"
