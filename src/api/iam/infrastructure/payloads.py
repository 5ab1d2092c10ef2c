"""Pydantic models for the identity platform's wire format.

These models own the JSON shapes of platform requests and responses and
convert them into the typed records the directory gateway hands back.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from iam.domain.value_objects import AuthSource, PrincipalKind, ScopeDescriptor
from iam.ports.gateway import (
    AssignmentRecord,
    PrincipalRecord,
    RoleRecord,
    ScopeGroupRecord,
)

_AUTH_SOURCES = {
    "LOCAL": AuthSource.LOCAL,
    "INTERNAL": AuthSource.LOCAL,
    "SSO": AuthSource.SSO,
    "SCIM": AuthSource.SSO,
    "EXTERNAL": AuthSource.EXTERNAL,
}


def parse_auth_source(value: str | None) -> AuthSource:
    """Map a platform auth source onto AuthSource.

    Unknown or missing sources are treated as EXTERNAL, which is never
    mutable.
    """
    if not value:
        return AuthSource.EXTERNAL
    return _AUTH_SOURCES.get(value.strip().upper(), AuthSource.EXTERNAL)


def as_item_list(body: Any) -> list[dict[str, Any]]:
    """Normalize a lookup response body into a list of objects.

    The platform answers with a single object, a bare list, or a
    ``{"data": ...}`` envelope depending on the endpoint and on how many
    results matched.
    """
    if body is None:
        return []
    if isinstance(body, dict) and "data" in body:
        body = body["data"]
    if body is None:
        return []
    if isinstance(body, dict):
        return [body]
    if isinstance(body, list):
        return [item for item in body if isinstance(item, dict)]
    raise ValueError(f"Unexpected response body type: {type(body).__name__}")


class _PlatformModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PrincipalPayload(_PlatformModel):
    """A user or user group."""

    id: str
    email: str | None = None
    name: str | None = None
    auth_source: str | None = Field(default=None, alias="authSource")

    def to_record(self, kind: PrincipalKind) -> PrincipalRecord:
        """Convert to a directory record."""
        name = self.email if kind == PrincipalKind.USER else self.name
        return PrincipalRecord(
            id=self.id,
            kind=kind,
            name=name or self.name or self.email or "",
            auth_source=parse_auth_source(self.auth_source),
        )


class RolePayload(_PlatformModel):
    """A role definition."""

    id: str
    display_name: str = Field(alias="displayName")
    service: str = ""
    workspace_level: bool = Field(default=False, alias="workspaceLevel")
    grn: str | None = None

    def to_record(self) -> RoleRecord:
        """Convert to a directory record."""
        return RoleRecord(
            role_id=self.id,
            display_name=self.display_name,
            service=self.service,
            workspace_level=self.workspace_level,
            grn=self.grn,
        )


class ScopeGroupPayload(_PlatformModel):
    """A scope group, either standalone or embedded in an assignment."""

    id: str
    name: str = ""
    region: str | None = None
    grn: str | None = None

    def to_record(self) -> ScopeGroupRecord:
        """Convert to a directory record."""
        return ScopeGroupRecord(
            id=self.id, name=self.name, region=self.region, grn=self.grn
        )


class AssignmentScopePayload(_PlatformModel):
    """The scope part of an assignment."""

    entire_tenant: bool = Field(default=False, alias="entireTenant")
    scope_groups: list[ScopeGroupPayload] = Field(
        default_factory=list, alias="scopeGroups"
    )


class AssignmentPayload(_PlatformModel):
    """A role assignment."""

    id: str
    principal_id: str = Field(alias="principalId")
    role_grn: str = Field(alias="roleGrn")
    scope: AssignmentScopePayload = Field(default_factory=AssignmentScopePayload)

    def to_record(self) -> AssignmentRecord:
        """Convert to a directory record."""
        return AssignmentRecord(
            id=self.id,
            principal_id=self.principal_id,
            role_grn=self.role_grn,
            entire_tenant=self.scope.entire_tenant,
            scope_groups=tuple(sg.to_record() for sg in self.scope.scope_groups),
        )


class AssignmentListPayload(_PlatformModel):
    """One page of a principal's assignments."""

    data: list[AssignmentPayload] = Field(default_factory=list)
    next_page_token: str | None = Field(default=None, alias="nextPageToken")


def scope_body(scope: ScopeDescriptor) -> dict[str, Any]:
    """Request body fragment describing an assignment scope."""
    if scope.is_entire_tenant:
        return {"entireTenant": True, "scopeGroupGrns": []}
    return {"entireTenant": False, "scopeGroupGrns": list(scope.sorted_grns())}


class CreatedAssignmentPayload(_PlatformModel):
    """Response to a create request."""

    id: str


class PlatformErrorPayload(_PlatformModel):
    """Error body returned by the platform."""

    code: str | None = None
    message: str | None = None


class TokenResponse(_PlatformModel):
    """OAuth2 token response."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int = 3600
    issued_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def needs_refresh(self, buffer_seconds: int) -> bool:
        """Check if the token expires within buffer_seconds."""
        expiry = self.issued_at + timedelta(seconds=self.expires_in - buffer_seconds)
        return datetime.now(UTC) >= expiry
