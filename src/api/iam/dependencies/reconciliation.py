"""Dependency injection for role-assignment reconciliation.

Composes the shared platform HTTP client with IAM-specific components
(platform session and client, reconciliation services). A new
orchestrator, and therefore a new set of resolver caches, is built per
HTTP request, which is one batch run.
"""

from functools import lru_cache
from typing import Annotated

import httpx
from fastapi import Depends

from iam.application.observability import (
    BatchOrchestratorProbe,
    DefaultBatchOrchestratorProbe,
)
from iam.application.services import (
    AssignmentExecutor,
    AssignmentStateReader,
    BatchOrchestrator,
    IdentifierResolver,
    ReconciliationService,
)
from iam.domain.value_objects import PlatformContext
from iam.infrastructure.platform_client import PlatformClient
from iam.infrastructure.platform_session import PlatformSession
from infrastructure.dependencies import get_platform_http_client
from infrastructure.settings import (
    PlatformSettings,
    ReconciliationSettings,
    get_platform_settings,
    get_reconciliation_settings,
)


def get_platform_context(
    platform: Annotated[PlatformSettings, Depends(get_platform_settings)],
    reconciliation: Annotated[
        ReconciliationSettings, Depends(get_reconciliation_settings)
    ],
) -> PlatformContext:
    """Get the tenant context canonical names are built in.

    Args:
        platform: Platform connection settings
        reconciliation: Reconciliation engine settings

    Returns:
        PlatformContext built from settings
    """
    return PlatformContext(
        tenant_id=platform.tenant_id,
        region=platform.region,
        partition=platform.partition,
        identity_service=reconciliation.identity_service,
        internal_role_service=reconciliation.internal_role_service,
    )


@lru_cache
def get_platform_session() -> PlatformSession:
    """Get application-scoped platform session (singleton).

    The session caches the access token across requests.
    """
    settings = get_platform_settings()
    return PlatformSession(
        http_client=get_platform_http_client(),
        token_url=settings.resolved_token_url,
        client_id=settings.client_id,
        client_secret=settings.client_secret.get_secret_value(),
        refresh_buffer_seconds=settings.token_refresh_buffer_seconds,
    )


def get_platform_client(
    http_client: Annotated[httpx.AsyncClient, Depends(get_platform_http_client)],
    session: Annotated[PlatformSession, Depends(get_platform_session)],
    platform: Annotated[PlatformSettings, Depends(get_platform_settings)],
) -> PlatformClient:
    """Get PlatformClient instance.

    Args:
        http_client: Shared platform HTTP client
        session: Platform session providing access tokens
        platform: Platform connection settings

    Returns:
        PlatformClient acting as directory gateway and assignment writer
    """
    return PlatformClient(
        http_client=http_client,
        session=session,
        base_url=platform.base_url,
        tenant_id=platform.tenant_id,
        page_size=platform.page_size,
    )


def get_batch_orchestrator_probe() -> BatchOrchestratorProbe:
    """Get BatchOrchestratorProbe instance.

    Returns:
        DefaultBatchOrchestratorProbe instance for observability
    """
    return DefaultBatchOrchestratorProbe()


def get_batch_orchestrator(
    client: Annotated[PlatformClient, Depends(get_platform_client)],
    session: Annotated[PlatformSession, Depends(get_platform_session)],
    context: Annotated[PlatformContext, Depends(get_platform_context)],
    reconciliation: Annotated[
        ReconciliationSettings, Depends(get_reconciliation_settings)
    ],
    probe: Annotated[BatchOrchestratorProbe, Depends(get_batch_orchestrator_probe)],
) -> BatchOrchestrator:
    """Get BatchOrchestrator instance for one batch run.

    Args:
        client: Platform client (directory gateway and assignment writer)
        session: Platform session opened at the start of the run
        context: Tenant context for canonical names
        reconciliation: Reconciliation engine settings
        probe: Batch orchestrator probe for observability

    Returns:
        BatchOrchestrator with fresh resolver caches
    """
    service = ReconciliationService(
        resolver=IdentifierResolver(gateway=client, context=context),
        state_reader=AssignmentStateReader(gateway=client, context=context),
        executor=AssignmentExecutor(writer=client),
    )
    return BatchOrchestrator(
        service=service,
        session=session,
        max_concurrency=reconciliation.max_concurrency,
        probe=probe,
        tenant_id=context.tenant_id,
    )
