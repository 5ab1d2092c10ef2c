"""Unit tests for IAM dependencies.

Tests that the reconciliation dependencies compose settings, the platform
session and client, and the orchestrator the way routes expect.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from iam.application.observability import DefaultBatchOrchestratorProbe
from iam.application.services import BatchOrchestrator
from iam.dependencies.reconciliation import (
    get_batch_orchestrator,
    get_platform_client,
    get_platform_context,
    get_platform_session,
)
from iam.infrastructure.platform_client import PlatformClient
from iam.infrastructure.platform_session import PlatformSession
from infrastructure.settings import PlatformSettings, ReconciliationSettings


@pytest.fixture
def platform_settings() -> PlatformSettings:
    """Platform settings for an example tenant."""
    return PlatformSettings(
        base_url="https://platform.test",
        tenant_id="acme",
        region="us-east-1",
        client_secret="secret",
    )


@pytest.fixture
def reconciliation_settings() -> ReconciliationSettings:
    """Reconciliation settings with a worker pool."""
    return ReconciliationSettings(max_concurrency=4, internal_role_service="core")


class TestGetPlatformContext:
    """Tests for get_platform_context."""

    def test_combines_both_settings_sections(
        self,
        platform_settings: PlatformSettings,
        reconciliation_settings: ReconciliationSettings,
    ) -> None:
        """Context carries tenant, region and the GRN service segments."""
        context = get_platform_context(platform_settings, reconciliation_settings)

        assert context.tenant_id == "acme"
        assert context.region == "us-east-1"
        assert context.identity_service == "iam"
        assert context.internal_role_service == "core"


class TestGetPlatformSession:
    """Tests for get_platform_session."""

    def test_is_application_scoped(self) -> None:
        """The session is cached so the token survives across requests."""
        get_platform_session.cache_clear()
        try:
            assert isinstance(get_platform_session(), PlatformSession)
            assert get_platform_session() is get_platform_session()
        finally:
            get_platform_session.cache_clear()


class TestGetBatchOrchestrator:
    """Tests for get_batch_orchestrator."""

    def test_builds_orchestrator_per_call(
        self,
        platform_settings: PlatformSettings,
        reconciliation_settings: ReconciliationSettings,
    ) -> None:
        """Each call returns a new orchestrator with fresh caches."""
        session = MagicMock(spec=PlatformSession)
        client = get_platform_client(
            http_client=MagicMock(spec=httpx.AsyncClient),
            session=session,
            platform=platform_settings,
        )
        context = get_platform_context(platform_settings, reconciliation_settings)

        first = get_batch_orchestrator(
            client=client,
            session=session,
            context=context,
            reconciliation=reconciliation_settings,
            probe=DefaultBatchOrchestratorProbe(),
        )
        second = get_batch_orchestrator(
            client=client,
            session=session,
            context=context,
            reconciliation=reconciliation_settings,
            probe=DefaultBatchOrchestratorProbe(),
        )

        assert isinstance(client, PlatformClient)
        assert isinstance(first, BatchOrchestrator)
        assert first is not second
        assert first._max_concurrency == 4
        assert first._service is not second._service
