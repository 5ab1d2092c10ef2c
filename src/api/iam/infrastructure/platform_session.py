"""OAuth2 client-credentials session for the identity platform."""

from __future__ import annotations

import asyncio

import httpx
from pydantic import ValidationError

from iam.infrastructure.observability import (
    DefaultPlatformClientProbe,
    PlatformClientProbe,
)
from iam.infrastructure.payloads import TokenResponse
from iam.ports.exceptions import SessionEstablishmentError


class PlatformSession:
    """Obtains and caches the platform access token.

    The token is reused until it is within ``refresh_buffer_seconds`` of
    expiring. Concurrent callers share a single in-flight token request.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_url: str,
        client_id: str,
        client_secret: str,
        refresh_buffer_seconds: int = 300,
        probe: PlatformClientProbe | None = None,
    ):
        self._http = http_client
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_buffer_seconds = refresh_buffer_seconds
        self._probe = probe or DefaultPlatformClientProbe()
        self._token: TokenResponse | None = None
        self._lock = asyncio.Lock()

    async def open_session(self) -> None:
        """Ensure a valid access token is cached.

        Raises:
            SessionEstablishmentError: If the token endpoint cannot be reached
                or refuses the client credentials
        """
        await self.access_token()

    def invalidate(self) -> None:
        """Drop the cached token so the next call fetches a new one."""
        self._token = None

    async def access_token(self) -> str:
        """Return a valid access token, fetching one if needed.

        Raises:
            SessionEstablishmentError: If no token can be obtained
        """
        async with self._lock:
            if self._token is None or self._token.needs_refresh(
                self._refresh_buffer_seconds
            ):
                self._token = await self._fetch_token()
            return self._token.access_token

    async def _fetch_token(self) -> TokenResponse:
        try:
            response = await self._http.post(
                self._token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                },
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            self._probe.session_failed(reason=repr(e))
            raise SessionEstablishmentError(
                f"Token endpoint unreachable: {e}"
            ) from e

        if response.status_code != 200:
            self._probe.session_failed(
                reason="token request rejected", status_code=response.status_code
            )
            raise SessionEstablishmentError(
                f"Token request failed with HTTP {response.status_code}"
            )

        try:
            token = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            self._probe.session_failed(reason=f"invalid token response: {e}")
            raise SessionEstablishmentError("Invalid token response") from e

        self._probe.session_established(expires_in=token.expires_in)
        return token
