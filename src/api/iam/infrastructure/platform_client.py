"""httpx implementation of the directory gateway and assignment writer.

Classifies platform responses by HTTP status code:

- 404 on a lookup is an empty result; on a mutation, NotFoundError
- 409 is ConflictError
- 401 drops the cached token and retries once; a second 401 means the
  session is gone (SessionEstablishmentError)
- any other status >= 400 is PlatformError carrying the status and the
  platform's own error code
- transport failures are TransientLookupError
"""

from __future__ import annotations

import time
from typing import Any

import httpx
from pydantic import ValidationError

from iam.domain.value_objects import (
    AssignmentId,
    PrincipalId,
    PrincipalKind,
    ScopeDescriptor,
)
from iam.infrastructure.observability import (
    DefaultPlatformClientProbe,
    PlatformClientProbe,
)
from iam.infrastructure.payloads import (
    AssignmentListPayload,
    CreatedAssignmentPayload,
    PlatformErrorPayload,
    PrincipalPayload,
    RolePayload,
    ScopeGroupPayload,
    as_item_list,
    scope_body,
)
from iam.infrastructure.platform_session import PlatformSession
from iam.ports.exceptions import (
    ConflictError,
    NotFoundError,
    PlatformError,
    SessionEstablishmentError,
    TransientLookupError,
)
from iam.ports.gateway import (
    AssignmentRecord,
    PrincipalRecord,
    RoleRecord,
    ScopeGroupRecord,
)

_PRINCIPAL_LOOKUPS = {
    PrincipalKind.USER: ("/v1/users", "email"),
    PrincipalKind.USER_GROUP: ("/v1/user-groups", "name"),
}


def _error_code(response: httpx.Response) -> str | None:
    try:
        return PlatformErrorPayload.model_validate(response.json()).code
    except ValueError:
        return None


def _error_message(response: httpx.Response) -> str:
    try:
        message = PlatformErrorPayload.model_validate(response.json()).message
    except ValueError:
        message = None
    return message or response.reason_phrase or f"HTTP {response.status_code}"


def _json_or_none(response: httpx.Response) -> Any:
    if response.status_code == 204 or not response.content:
        return None
    return response.json()


class PlatformClient:
    """Talks to the identity platform's REST API.

    Implements both IDirectoryGateway and IAssignmentWriter. The underlying
    httpx.AsyncClient is owned by the caller.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        session: PlatformSession,
        base_url: str,
        tenant_id: str,
        page_size: int = 100,
        probe: PlatformClientProbe | None = None,
    ):
        self._http = http_client
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._tenant_id = tenant_id
        self._page_size = page_size
        self._probe = probe or DefaultPlatformClientProbe()

    async def _headers(self) -> dict[str, str]:
        token = await self._session.access_token()
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "X-Tenant-Id": self._tenant_id,
        }

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        json: dict[str, Any] | None,
    ) -> httpx.Response:
        started = time.perf_counter()
        try:
            response = await self._http.request(
                method,
                f"{self._base_url}{path}",
                params=params,
                json=json,
                headers=await self._headers(),
            )
        except httpx.TransportError as e:
            self._probe.transport_failed(method=method, path=path, reason=repr(e))
            raise TransientLookupError(
                f"{method} {path} failed: {e.__class__.__name__}"
            ) from e

        self._probe.request_completed(
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        return response

    async def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send one request, retrying once with a fresh token after a 401."""
        response = await self._request(method, path, params, json)
        if response.status_code != 401:
            return response

        self._session.invalidate()
        response = await self._request(method, path, params, json)
        if response.status_code == 401:
            self._probe.request_rejected(method=method, path=path, status_code=401)
            raise SessionEstablishmentError(
                f"{method} {path} was rejected as unauthenticated"
            )
        return response

    def _raise_for_status(
        self,
        method: str,
        path: str,
        response: httpx.Response,
        entity: str,
        reference: str,
    ) -> None:
        status = response.status_code
        if status < 400:
            return
        error_code = _error_code(response)
        self._probe.request_rejected(
            method=method, path=path, status_code=status, error_code=error_code
        )
        if status == 404:
            raise NotFoundError(entity, reference)
        if status == 409:
            raise ConflictError(_error_message(response), error_code=error_code)
        raise PlatformError(
            f"{method} {path} failed with HTTP {status}: {_error_message(response)}",
            status_code=status,
            error_code=error_code,
        )

    async def _lookup(self, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        response = await self._send("GET", path, params=params)
        if response.status_code == 404:
            return []
        self._raise_for_status(
            "GET", path, response, entity="resource", reference=str(params)
        )
        try:
            return as_item_list(_json_or_none(response))
        except ValueError as e:
            raise PlatformError(
                f"GET {path} returned an unreadable body",
                status_code=response.status_code,
            ) from e

    def _parse(self, path: str, model: type, items: list[dict[str, Any]]) -> list:
        try:
            return [model.model_validate(item) for item in items]
        except ValidationError as e:
            raise PlatformError(
                f"GET {path} returned an unexpected shape: {e.error_count()} errors",
                status_code=200,
            ) from e

    async def lookup_principals(
        self, reference: str, kind: PrincipalKind
    ) -> list[PrincipalRecord]:
        path, param = _PRINCIPAL_LOOKUPS[kind]
        items = await self._lookup(path, {param: reference})
        return [
            payload.to_record(kind)
            for payload in self._parse(path, PrincipalPayload, items)
        ]

    async def lookup_roles(self, display_name: str) -> list[RoleRecord]:
        path = "/v1/roles"
        items = await self._lookup(path, {"displayName": display_name})
        return [payload.to_record() for payload in self._parse(path, RolePayload, items)]

    async def lookup_scope_groups(self, name: str) -> list[ScopeGroupRecord]:
        path = "/v1/scope-groups"
        items = await self._lookup(path, {"name": name})
        return [
            payload.to_record()
            for payload in self._parse(path, ScopeGroupPayload, items)
        ]

    async def list_assignments(self, principal_id: PrincipalId) -> list[AssignmentRecord]:
        path = f"/v1/principals/{principal_id.value}/role-assignments"
        records: list[AssignmentRecord] = []
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {"pageSize": self._page_size}
            if page_token:
                params["pageToken"] = page_token
            response = await self._send("GET", path, params=params)
            if response.status_code == 404:
                return records
            self._raise_for_status(
                "GET", path, response, entity="principal", reference=principal_id.value
            )

            try:
                body = _json_or_none(response)
                if isinstance(body, list):
                    page = AssignmentListPayload.model_validate({"data": body})
                else:
                    page = AssignmentListPayload.model_validate(body or {})
            except ValidationError as e:
                raise PlatformError(
                    f"GET {path} returned an unexpected shape: "
                    f"{e.error_count()} errors",
                    status_code=response.status_code,
                ) from e
            except ValueError as e:
                raise PlatformError(
                    f"GET {path} returned an unreadable body",
                    status_code=response.status_code,
                ) from e

            records.extend(payload.to_record() for payload in page.data)
            if not page.next_page_token or page.next_page_token == page_token:
                return records
            page_token = page.next_page_token

    async def create_assignment(
        self,
        principal_id: PrincipalId,
        role_grn: str,
        scope: ScopeDescriptor,
    ) -> AssignmentId:
        path = "/v1/role-assignments"
        response = await self._send(
            "POST",
            path,
            json={
                "principalId": principal_id.value,
                "roleGrn": role_grn,
                "scope": scope_body(scope),
            },
        )
        self._raise_for_status(
            "POST", path, response, entity="principal", reference=principal_id.value
        )
        try:
            created = CreatedAssignmentPayload.model_validate(
                as_item_list(_json_or_none(response))[0]
            )
        except (IndexError, ValueError) as e:
            raise PlatformError(
                f"POST {path} did not return an assignment id",
                status_code=response.status_code,
            ) from e
        return AssignmentId.from_string(created.id)

    async def update_assignment(
        self,
        assignment_id: AssignmentId,
        scope: ScopeDescriptor,
    ) -> None:
        path = f"/v1/role-assignments/{assignment_id.value}"
        response = await self._send("PATCH", path, json={"scope": scope_body(scope)})
        self._raise_for_status(
            "PATCH", path, response, entity="assignment", reference=assignment_id.value
        )

    async def delete_assignment(self, assignment_id: AssignmentId) -> None:
        path = f"/v1/role-assignments/{assignment_id.value}"
        response = await self._send("DELETE", path)
        self._raise_for_status(
            "DELETE", path, response, entity="assignment", reference=assignment_id.value
        )
