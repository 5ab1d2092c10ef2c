"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from iam.presentation import router as iam_router
from infrastructure.dependencies import close_platform_http_client
from infrastructure.logging import configure_logging
from infrastructure.settings import get_settings
from infrastructure.version import __version__


@asynccontextmanager
async def grantline_lifespan(app: FastAPI):
    """Application lifespan context.

    Manages:
    - Logging configuration
    - Platform HTTP client lifecycle (created lazily, closed on shutdown)
    """
    configure_logging(debug=get_settings().debug)

    yield

    await close_platform_http_client()


app = FastAPI(
    title=get_settings().app_name,
    description="Role-assignment reconciliation for a multi-tenant identity platform",
    version=__version__,
    lifespan=grantline_lifespan,
)

# Include IAM bounded context routes
app.include_router(iam_router)


@app.get("/health")
def health():
    """Basic health check endpoint."""
    return {"status": "ok"}
