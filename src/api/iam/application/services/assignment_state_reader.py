"""Current assignment state for IAM bounded context."""

from __future__ import annotations

from iam.application.observability import (
    AssignmentStateReaderProbe,
    DefaultAssignmentStateReaderProbe,
)
from iam.application.services.identifier_resolver import scope_group_grn
from iam.domain.aggregates import Assignment
from iam.domain.differ import assignments_for_role
from iam.domain.value_objects import (
    AssignmentId,
    PlatformContext,
    PrincipalId,
    ScopeDescriptor,
)
from iam.ports.gateway import AssignmentRecord, IDirectoryGateway


class AssignmentStateReader:
    """Reads a principal's assignments and normalizes them for comparison.

    Every assignment comes back as (role GRN, scope descriptor) where the
    scope is the entire tenant or a set of scope-group GRNs, never display
    names, so it can be compared directly against a resolved request.
    """

    def __init__(
        self,
        gateway: IDirectoryGateway,
        context: PlatformContext,
        probe: AssignmentStateReaderProbe | None = None,
    ):
        """Initialize AssignmentStateReader with dependencies.

        Args:
            gateway: Directory gateway for read-only lookups
            context: Tenant context used to build scope-group GRNs
            probe: Optional domain probe for observability
        """
        self._gateway = gateway
        self._context = context
        self._probe = probe or DefaultAssignmentStateReaderProbe()

    def _normalize(self, record: AssignmentRecord) -> Assignment:
        if record.entire_tenant or not record.scope_groups:
            scope = ScopeDescriptor.entire_tenant()
        else:
            scope = ScopeDescriptor.of(
                scope_group_grn(sg, self._context) for sg in record.scope_groups
            )
        return Assignment(
            id=AssignmentId.from_string(record.id),
            principal_id=PrincipalId.from_string(record.principal_id),
            role_grn=record.role_grn,
            scope=scope,
        )

    async def read(self, principal_id: PrincipalId) -> list[Assignment]:
        """Return every current assignment held by the principal.

        Args:
            principal_id: The resolved principal

        Returns:
            Normalized assignments; empty if the principal holds none

        Raises:
            TransientLookupError: If the platform cannot be reached
            PlatformError: If the platform rejects the lookup
        """
        try:
            records = await self._gateway.list_assignments(principal_id)
        except Exception as e:
            self._probe.assignment_read_failed(
                principal_id=principal_id.value, error=str(e)
            )
            raise

        assignments = [self._normalize(record) for record in records]
        self._probe.assignments_read(
            principal_id=principal_id.value, count=len(assignments)
        )
        return assignments

    async def current_for_role(
        self, principal_id: PrincipalId, role_grn: str
    ) -> Assignment | None:
        """Return the principal's assignment for one role, if any.

        If the platform reports more than one, the lowest assignment id wins
        and the anomaly is recorded.
        """
        matching = assignments_for_role(await self.read(principal_id), role_grn)
        if len(matching) > 1:
            self._probe.duplicate_assignments_detected(
                principal_id=principal_id.value,
                role_grn=role_grn,
                assignment_ids=[a.id.value for a in matching],
            )
        return matching[0] if matching else None
