"""Identifier resolution for IAM bounded context.

Turns the human-readable names administrators use (principal email or
group name, role display name, scope-group name) into the platform's
canonical identifiers.
"""

from __future__ import annotations

from typing import Sequence

from iam.application.observability import (
    DefaultIdentifierResolverProbe,
    IdentifierResolverProbe,
)
from iam.domain.aggregates import Principal, Role, ScopeGroup
from iam.domain.role_selection import select_role
from iam.domain.value_objects import (
    PlatformContext,
    PrincipalId,
    PrincipalKind,
    RoleCapability,
    ScopeDescriptor,
)
from iam.ports.exceptions import NotFoundError
from iam.ports.gateway import IDirectoryGateway, RoleRecord, ScopeGroupRecord
from shared_kernel.identifiers import ResourceType, format_grn

_PRINCIPAL_LABELS = {
    PrincipalKind.USER: "user",
    PrincipalKind.USER_GROUP: "user group",
}


def infer_principal_kind(reference: str) -> PrincipalKind:
    """Guess whether a reference names a user or a user group.

    Email addresses are users; anything else is treated as a group name.
    """
    return PrincipalKind.USER if "@" in reference else PrincipalKind.USER_GROUP


def role_grn(record: RoleRecord, context: PlatformContext) -> str:
    """Canonical name of a role record.

    Roles are platform-global, so a GRN built here carries no tenant or
    region.
    """
    if record.grn:
        return record.grn
    return format_grn(
        ResourceType.ROLE,
        record.role_id,
        service=record.service,
        partition=context.partition,
    )


def scope_group_grn(record: ScopeGroupRecord, context: PlatformContext) -> str:
    """Canonical name of a scope-group record.

    Scope groups are tenant-owned; the record's region wins over the
    context's default region.
    """
    if record.grn:
        return record.grn
    return format_grn(
        ResourceType.SCOPE_GROUP,
        record.id,
        service=context.identity_service,
        tenant=context.tenant_id,
        region=record.region or context.region,
        partition=context.partition,
    )


class IdentifierResolver:
    """Resolves names into canonical identifiers.

    Matching on names is exact and case-sensitive. Successful lookups are
    cached for the lifetime of the resolver, which is one batch run; the
    caches are only ever added to, so concurrent requests may share them.
    Correctness never depends on a cache hit.
    """

    def __init__(
        self,
        gateway: IDirectoryGateway,
        context: PlatformContext,
        probe: IdentifierResolverProbe | None = None,
    ):
        """Initialize IdentifierResolver with dependencies.

        Args:
            gateway: Directory gateway for read-only lookups
            context: Tenant context used to build canonical names
            probe: Optional domain probe for observability
        """
        self._gateway = gateway
        self._context = context
        self._probe = probe or DefaultIdentifierResolverProbe()
        self._principals: dict[tuple[PrincipalKind, str], Principal] = {}
        self._roles: dict[str, Role] = {}
        self._scope_groups: dict[str, ScopeGroup] = {}

    async def resolve_principal(
        self,
        reference: str,
        kind: PrincipalKind | None = None,
    ) -> Principal:
        """Resolve a user email or user-group name.

        Args:
            reference: User email or user-group name
            kind: Optional explicit kind; inferred from the reference if omitted

        Returns:
            The resolved Principal

        Raises:
            NotFoundError: If no principal has exactly this name
        """
        kind = kind or infer_principal_kind(reference)
        key = (kind, reference)
        cached = self._principals.get(key)
        if cached is not None:
            self._probe.lookup_cache_hit(entity_kind=kind.value, reference=reference)
            return cached

        records = await self._gateway.lookup_principals(reference, kind)
        matches = sorted(
            (r for r in records if r.name == reference),
            key=lambda r: r.id,
        )
        if not matches:
            self._probe.resolution_failed(
                entity_kind=_PRINCIPAL_LABELS[kind], reference=reference
            )
            raise NotFoundError(_PRINCIPAL_LABELS[kind], reference)

        record = matches[0]
        principal = Principal(
            id=PrincipalId.from_string(record.id),
            kind=record.kind,
            display_name=record.name,
            auth_source=record.auth_source,
        )
        self._principals[key] = principal
        self._probe.principal_resolved(
            reference=reference,
            principal_id=principal.id.value,
            auth_source=principal.auth_source.value,
        )
        return principal

    async def resolve_role(self, display_name: str) -> Role:
        """Resolve a role display name to exactly one role.

        When several roles share the display name the internal variant is
        preferred, then the first by GRN (see iam.domain.role_selection).

        Args:
            display_name: Role display name

        Returns:
            The resolved Role with its canonical GRN and capability

        Raises:
            NotFoundError: If no role has exactly this display name
        """
        cached = self._roles.get(display_name)
        if cached is not None:
            self._probe.lookup_cache_hit(entity_kind="role", reference=display_name)
            return cached

        records = await self._gateway.lookup_roles(display_name)
        candidates: dict[str, Role] = {}
        for record in records:
            if record.display_name != display_name:
                continue
            grn = role_grn(record, self._context)
            candidates.setdefault(
                grn,
                Role(
                    grn=grn,
                    display_name=record.display_name,
                    capability=(
                        RoleCapability.WORKSPACE_LEVEL
                        if record.workspace_level
                        else RoleCapability.SCOPABLE
                    ),
                ),
            )

        if not candidates:
            self._probe.resolution_failed(entity_kind="role", reference=display_name)
            raise NotFoundError("role", display_name)

        role = select_role(
            list(candidates.values()), self._context.internal_role_service
        )
        if len(candidates) > 1:
            self._probe.role_name_collision(
                display_name=display_name,
                candidates=sorted(candidates),
                selected=role.grn,
            )

        self._roles[display_name] = role
        self._probe.role_resolved(
            display_name=display_name,
            grn=role.grn,
            candidate_count=len(candidates),
        )
        return role

    async def resolve_scope_group(self, name: str) -> ScopeGroup:
        """Resolve a single scope-group name.

        Raises:
            NotFoundError: If no scope group has exactly this name
        """
        cached = self._scope_groups.get(name)
        if cached is not None:
            self._probe.lookup_cache_hit(entity_kind="scope group", reference=name)
            return cached

        records = await self._gateway.lookup_scope_groups(name)
        matches = sorted(
            (
                ScopeGroup(
                    grn=scope_group_grn(r, self._context),
                    name=r.name,
                    region=r.region or self._context.region,
                )
                for r in records
                if r.name == name
            ),
            key=lambda sg: sg.grn,
        )
        if not matches:
            self._probe.resolution_failed(entity_kind="scope group", reference=name)
            raise NotFoundError("scope group", name)

        scope_group = matches[0]
        self._scope_groups[name] = scope_group
        self._probe.scope_group_resolved(name=name, grn=scope_group.grn)
        return scope_group

    async def resolve_scope(self, names: Sequence[str]) -> ScopeDescriptor:
        """Resolve requested scope-group names into a scope descriptor.

        Args:
            names: Scope-group names; empty means the entire tenant

        Returns:
            The resolved ScopeDescriptor

        Raises:
            NotFoundError: Naming the first scope group that does not resolve
        """
        if not names:
            return ScopeDescriptor.entire_tenant()

        grns = [(await self.resolve_scope_group(name)).grn for name in names]
        return ScopeDescriptor.of(grns)

