"""Fixtures for IAM unit tests.

Provides an in-memory identity platform that implements the directory
gateway, assignment writer and session ports, and records every mutating
call so tests can assert how many were issued.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable

import pytest

from iam.application.services import (
    AssignmentExecutor,
    AssignmentStateReader,
    BatchOrchestrator,
    IdentifierResolver,
    ReconciliationService,
)
from iam.domain.value_objects import (
    AssignmentId,
    AuthSource,
    PlatformContext,
    PrincipalId,
    PrincipalKind,
    ScopeDescriptor,
)
from iam.ports.exceptions import NotFoundError
from iam.ports.gateway import (
    AssignmentRecord,
    PrincipalRecord,
    RoleRecord,
    ScopeGroupRecord,
)
from shared_kernel.identifiers import ResourceType, format_grn

TENANT = "acme"
REGION = "us-east-1"


def scope_group_grn_for(sg_id: str) -> str:
    return format_grn(
        ResourceType.SCOPE_GROUP, sg_id, service="iam", tenant=TENANT, region=REGION
    )


class FakePlatform:
    """Stateful in-memory identity platform."""

    def __init__(self) -> None:
        self.principals: list[PrincipalRecord] = []
        self.roles: list[RoleRecord] = []
        self.scope_groups: list[ScopeGroupRecord] = []
        self.assignments: dict[str, AssignmentRecord] = {}
        self.mutating_calls: list[tuple[str, str]] = []
        self.lookup_calls: list[tuple[str, str]] = []
        self.session_opened = 0
        self.session_error: Exception | None = None
        # Raised by the next mutating call of the given kind, then cleared.
        self.fail_next: dict[str, Exception] = {}
        self.lookup_errors: dict[str, Exception] = {}
        self._next_id = 1

    # Seeding helpers

    def add_principal(
        self,
        principal_id: str,
        name: str,
        kind: PrincipalKind = PrincipalKind.USER,
        auth_source: AuthSource = AuthSource.LOCAL,
    ) -> None:
        self.principals.append(
            PrincipalRecord(
                id=principal_id, kind=kind, name=name, auth_source=auth_source
            )
        )

    def add_role(
        self,
        role_id: str,
        display_name: str,
        service: str = "compute",
        workspace_level: bool = False,
    ) -> str:
        record = RoleRecord(
            role_id=role_id,
            display_name=display_name,
            service=service,
            workspace_level=workspace_level,
        )
        self.roles.append(record)
        return format_grn(ResourceType.ROLE, role_id, service=service)

    def add_scope_group(self, sg_id: str, name: str) -> str:
        self.scope_groups.append(ScopeGroupRecord(id=sg_id, name=name, region=REGION))
        return scope_group_grn_for(sg_id)

    def grant(
        self,
        principal_id: str,
        role_grn: str,
        scope_group_ids: tuple[str, ...] = (),
        assignment_id: str | None = None,
    ) -> str:
        assignment_id = assignment_id or self._new_id()
        self.assignments[assignment_id] = AssignmentRecord(
            id=assignment_id,
            principal_id=principal_id,
            role_grn=role_grn,
            entire_tenant=not scope_group_ids,
            scope_groups=tuple(
                ScopeGroupRecord(id=sg_id, region=REGION) for sg_id in scope_group_ids
            ),
        )
        return assignment_id

    def held_by(self, principal_id: str) -> list[AssignmentRecord]:
        return [a for a in self.assignments.values() if a.principal_id == principal_id]

    def _new_id(self) -> str:
        assignment_id = f"ra-{self._next_id:04d}"
        self._next_id += 1
        return assignment_id

    def _maybe_fail(self, kind: str) -> None:
        error = self.fail_next.pop(kind, None)
        if error is not None:
            raise error

    # ISessionProvider

    async def open_session(self) -> None:
        self.session_opened += 1
        if self.session_error is not None:
            raise self.session_error

    # IDirectoryGateway

    async def lookup_principals(
        self, reference: str, kind: PrincipalKind
    ) -> list[PrincipalRecord]:
        self.lookup_calls.append(("principal", reference))
        if "principal" in self.lookup_errors:
            raise self.lookup_errors["principal"]
        return [p for p in self.principals if p.kind == kind and p.name == reference]

    async def lookup_roles(self, display_name: str) -> list[RoleRecord]:
        self.lookup_calls.append(("role", display_name))
        return [r for r in self.roles if r.display_name == display_name]

    async def lookup_scope_groups(self, name: str) -> list[ScopeGroupRecord]:
        self.lookup_calls.append(("scope group", name))
        return [sg for sg in self.scope_groups if sg.name == name]

    async def list_assignments(self, principal_id: PrincipalId) -> list[AssignmentRecord]:
        self.lookup_calls.append(("assignments", principal_id.value))
        if "assignments" in self.lookup_errors:
            raise self.lookup_errors["assignments"]
        return self.held_by(principal_id.value)

    # IAssignmentWriter

    async def create_assignment(
        self,
        principal_id: PrincipalId,
        role_grn: str,
        scope: ScopeDescriptor,
    ) -> AssignmentId:
        self.mutating_calls.append(("create", role_grn))
        self._maybe_fail("create")
        assignment_id = self._new_id()
        self.assignments[assignment_id] = AssignmentRecord(
            id=assignment_id,
            principal_id=principal_id.value,
            role_grn=role_grn,
            entire_tenant=scope.is_entire_tenant,
            scope_groups=tuple(
                ScopeGroupRecord(id=grn.rsplit("/", 1)[-1], grn=grn)
                for grn in scope.sorted_grns()
            ),
        )
        return AssignmentId.from_string(assignment_id)

    async def update_assignment(
        self,
        assignment_id: AssignmentId,
        scope: ScopeDescriptor,
    ) -> None:
        self.mutating_calls.append(("update", assignment_id.value))
        self._maybe_fail("update")
        current = self.assignments.get(assignment_id.value)
        if current is None:
            raise NotFoundError("assignment", assignment_id.value)
        self.assignments[assignment_id.value] = replace(
            current,
            entire_tenant=scope.is_entire_tenant,
            scope_groups=tuple(
                ScopeGroupRecord(id=grn.rsplit("/", 1)[-1], grn=grn)
                for grn in scope.sorted_grns()
            ),
        )

    async def delete_assignment(self, assignment_id: AssignmentId) -> None:
        self.mutating_calls.append(("delete", assignment_id.value))
        self._maybe_fail("delete")
        if self.assignments.pop(assignment_id.value, None) is None:
            raise NotFoundError("assignment", assignment_id.value)


@pytest.fixture
def platform_context() -> PlatformContext:
    """Tenant context matching the fake platform's data."""
    return PlatformContext(tenant_id=TENANT, region=REGION)


@pytest.fixture
def platform() -> FakePlatform:
    """Fake platform seeded with principals, roles and scope groups.

    - jane@example.com: local user
    - sso.user@example.com: SSO-managed user
    - Platform Team: local user group
    - Operator: scopable role
    - Tenant Admin: workspace-level role
    - Viewer: display name shared by a billing role and an internal role
    - Prod, Staging, A, B: scope groups
    """
    fake = FakePlatform()
    fake.add_principal("u-jane", "jane@example.com")
    fake.add_principal(
        "u-sso", "sso.user@example.com", auth_source=AuthSource.SSO
    )
    fake.add_principal(
        "g-platform", "Platform Team", kind=PrincipalKind.USER_GROUP
    )
    fake.add_role("operator", "Operator")
    fake.add_role("tenant-admin", "Tenant Admin", service="iam", workspace_level=True)
    fake.add_role("viewer", "Viewer", service="billing")
    fake.add_role("viewer", "Viewer", service="internal")
    fake.add_scope_group("sg-prod", "Prod")
    fake.add_scope_group("sg-staging", "Staging")
    fake.add_scope_group("sg-a", "A")
    fake.add_scope_group("sg-b", "B")
    return fake


@pytest.fixture
def operator_grn() -> str:
    return format_grn(ResourceType.ROLE, "operator", service="compute")


@pytest.fixture
def make_service(
    platform: FakePlatform, platform_context: PlatformContext
) -> Callable[[], ReconciliationService]:
    """Factory for a ReconciliationService wired to the fake platform."""

    def _make() -> ReconciliationService:
        return ReconciliationService(
            resolver=IdentifierResolver(gateway=platform, context=platform_context),
            state_reader=AssignmentStateReader(
                gateway=platform, context=platform_context
            ),
            executor=AssignmentExecutor(writer=platform),
        )

    return _make


@pytest.fixture
def make_orchestrator(
    platform: FakePlatform,
    make_service: Callable[[], ReconciliationService],
) -> Callable[..., BatchOrchestrator]:
    """Factory for a BatchOrchestrator wired to the fake platform."""

    def _make(max_concurrency: int = 1) -> BatchOrchestrator:
        return BatchOrchestrator(
            service=make_service(),
            session=platform,
            max_concurrency=max_concurrency,
            tenant_id=TENANT,
        )

    return _make


@pytest.fixture
def scope_grn() -> Callable[[str], str]:
    """Canonical name of a fake scope group, by id."""
    return scope_group_grn_for
