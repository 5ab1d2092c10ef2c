"""Shared infrastructure dependencies.

Provides ONLY raw transport resources (the platform HTTP client).
Does NOT import from bounded contexts to maintain DDD boundaries.
"""

from functools import lru_cache

import httpx

from infrastructure.settings import get_platform_settings


@lru_cache
def get_platform_http_client() -> httpx.AsyncClient:
    """Get application-scoped HTTP client for the identity platform (singleton).

    The client pools connections and is shared across all requests. It is
    closed by the application lifespan.

    Returns:
        httpx.AsyncClient configured with the platform timeout.
    """
    settings = get_platform_settings()
    return httpx.AsyncClient(timeout=settings.request_timeout_seconds)


async def close_platform_http_client() -> None:
    """Close the shared platform HTTP client if it was ever created."""
    if get_platform_http_client.cache_info().currsize:
        await get_platform_http_client().aclose()
        get_platform_http_client.cache_clear()
