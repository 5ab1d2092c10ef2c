"""Protocol for identity platform client observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class PlatformClientProbe(Protocol):
    """Domain probe for calls to the identity platform."""

    def session_established(self, expires_in: int) -> None:
        """Record that an access token was obtained."""
        ...

    def session_failed(self, reason: str, status_code: int | None = None) -> None:
        """Record that an access token could not be obtained."""
        ...

    def request_completed(
        self, method: str, path: str, status_code: int, duration_ms: float
    ) -> None:
        """Record a completed platform call."""
        ...

    def request_rejected(
        self,
        method: str,
        path: str,
        status_code: int,
        error_code: str | None = None,
    ) -> None:
        """Record a platform call answered with an error status."""
        ...

    def transport_failed(self, method: str, path: str, reason: str) -> None:
        """Record that the platform could not be reached."""
        ...

    def with_context(self, context: ObservationContext) -> PlatformClientProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultPlatformClientProbe:
    """Default implementation of PlatformClientProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultPlatformClientProbe:
        """Create a new probe with observation context bound."""
        return DefaultPlatformClientProbe(logger=self._logger, context=context)

    def session_established(self, expires_in: int) -> None:
        self._logger.info(
            "platform_session_established",
            expires_in=expires_in,
            **self._get_context_kwargs(),
        )

    def session_failed(self, reason: str, status_code: int | None = None) -> None:
        self._logger.error(
            "platform_session_failed",
            reason=reason,
            status_code=status_code,
            **self._get_context_kwargs(),
        )

    def request_completed(
        self, method: str, path: str, status_code: int, duration_ms: float
    ) -> None:
        self._logger.debug(
            "platform_request_completed",
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=duration_ms,
            **self._get_context_kwargs(),
        )

    def request_rejected(
        self,
        method: str,
        path: str,
        status_code: int,
        error_code: str | None = None,
    ) -> None:
        self._logger.warning(
            "platform_request_rejected",
            method=method,
            path=path,
            status_code=status_code,
            error_code=error_code,
            **self._get_context_kwargs(),
        )

    def transport_failed(self, method: str, path: str, reason: str) -> None:
        self._logger.error(
            "platform_transport_failed",
            method=method,
            path=path,
            reason=reason,
            **self._get_context_kwargs(),
        )
