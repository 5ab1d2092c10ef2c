"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PlatformSettings(BaseSettings):
    """Identity platform connection settings.

    Environment variables:
        GRANTLINE_PLATFORM_BASE_URL: Platform API base URL
        GRANTLINE_PLATFORM_TOKEN_URL: OAuth2 token endpoint (default: <base_url>/oauth2/token)
        GRANTLINE_PLATFORM_CLIENT_ID: OAuth2 client id
        GRANTLINE_PLATFORM_CLIENT_SECRET: OAuth2 client secret (required in production)
        GRANTLINE_PLATFORM_TENANT_ID: Tenant assignments are made in
        GRANTLINE_PLATFORM_REGION: Default region for tenant-owned resources
        GRANTLINE_PLATFORM_PARTITION: GRN partition segment (default: empty)
        GRANTLINE_PLATFORM_REQUEST_TIMEOUT_SECONDS: Per-request timeout (default: 30)
        GRANTLINE_PLATFORM_PAGE_SIZE: Items requested per page (default: 100)
        GRANTLINE_PLATFORM_TOKEN_REFRESH_BUFFER_SECONDS: Refresh tokens this early (default: 300)
    """

    model_config = SettingsConfigDict(
        env_prefix="GRANTLINE_PLATFORM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = Field(
        default="http://localhost:8080", description="Platform API base URL"
    )
    token_url: str | None = Field(
        default=None, description="OAuth2 token endpoint"
    )
    client_id: str = Field(default="grantline", description="OAuth2 client id")
    client_secret: SecretStr = Field(
        default=SecretStr(""),
        description="OAuth2 client secret",
    )
    tenant_id: str = Field(default="default", description="Tenant identifier")
    region: str = Field(default="", description="Default region")
    partition: str = Field(default="", description="GRN partition segment")
    request_timeout_seconds: float = Field(
        default=30.0,
        description="Per-request timeout in seconds",
        ge=1,
        le=300,
    )
    page_size: int = Field(
        default=100,
        description="Items requested per page",
        ge=1,
        le=1000,
    )
    token_refresh_buffer_seconds: int = Field(
        default=300,
        description="Refresh access tokens this many seconds before expiry",
        ge=0,
    )

    @property
    def resolved_token_url(self) -> str:
        """Token endpoint, defaulting to one under the base URL."""
        return self.token_url or f"{self.base_url.rstrip('/')}/oauth2/token"


class ReconciliationSettings(BaseSettings):
    """Reconciliation engine settings.

    Environment variables:
        GRANTLINE_RECONCILE_INTERNAL_ROLE_SERVICE: GRN service segment marking
            the internal variant of duplicate role names (default: internal)
        GRANTLINE_RECONCILE_IDENTITY_SERVICE: GRN service segment of
            tenant-owned IAM resources (default: iam)
        GRANTLINE_RECONCILE_MAX_CONCURRENCY: Requests in flight at once (default: 1)
    """

    model_config = SettingsConfigDict(
        env_prefix="GRANTLINE_RECONCILE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    internal_role_service: str = Field(
        default="internal",
        description="GRN service segment preferred when role names collide",
    )
    identity_service: str = Field(
        default="iam",
        description="GRN service segment of tenant-owned IAM resources",
    )
    max_concurrency: int = Field(
        default=1,
        description="Maximum reconciliation requests in flight",
        ge=1,
        le=32,
    )

    @model_validator(mode="after")
    def validate_service_segments(self) -> "ReconciliationSettings":
        """Validate GRN segments contain no separators."""
        for name in ("internal_role_service", "identity_service"):
            if ":" in getattr(self, name):
                raise ValueError(f"{name} must not contain ':'")
        return self


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Grantline API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def platform(self) -> PlatformSettings:
        """Get platform settings."""
        return get_platform_settings()

    @property
    def reconciliation(self) -> ReconciliationSettings:
        """Get reconciliation settings."""
        return get_reconciliation_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_platform_settings() -> PlatformSettings:
    """Get cached platform settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return PlatformSettings()


@lru_cache
def get_reconciliation_settings() -> ReconciliationSettings:
    """Get cached reconciliation settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return ReconciliationSettings()
