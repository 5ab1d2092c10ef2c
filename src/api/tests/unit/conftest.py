"""Unit test fixtures shared across bounded contexts."""

import pytest

from infrastructure.dependencies import get_platform_http_client
from infrastructure.settings import (
    get_platform_settings,
    get_reconciliation_settings,
    get_settings,
)


@pytest.fixture(autouse=True)
def clear_cached_settings():
    """Drop cached settings and clients so each test sees its own environment."""
    get_settings.cache_clear()
    get_platform_settings.cache_clear()
    get_reconciliation_settings.cache_clear()
    get_platform_http_client.cache_clear()
    yield
    get_settings.cache_clear()
    get_platform_settings.cache_clear()
    get_reconciliation_settings.cache_clear()
    get_platform_http_client.cache_clear()
