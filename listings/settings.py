"""Configuration models for the eBay listing side of the sync."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import (
    Field,
    PositiveFloat,
    PositiveInt,
    SecretStr,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment settings for fetching and enriching eBay listings."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    redis_url: str = Field(
        "redis://localhost:6379/0",
        alias="SYNC_REDIS_URL",
        description="Redis DSN used as the Celery broker/backend and for the run lock.",
    )
    ebay_store_name: str = Field(..., alias="EBAY_STORE_NAME", description="eBay store whose listings are mirrored.")
    ebay_app_id: str = Field(..., alias="EBAY_APP_ID", description="eBay application id (SECURITY-APPNAME).")
    ebay_cert_id: Optional[SecretStr] = Field(None, alias="EBAY_CERT_ID", description="eBay cert id.")
    ebay_client_id: Optional[str] = Field(
        None,
        alias="EBAY_CLIENT_ID",
        description="OAuth client id; falls back to EBAY_APP_ID.",
    )
    ebay_client_secret: Optional[SecretStr] = Field(
        None,
        alias="EBAY_CLIENT_SECRET",
        description="OAuth client secret; falls back to EBAY_CERT_ID.",
    )
    ebay_finding_endpoint: str = Field(
        "https://svcs.ebay.com/services/search/FindingService/v1",
        alias="EBAY_FINDING_ENDPOINT",
        description="Finding API endpoint.",
    )
    ebay_finding_service_version: str = Field("1.13.0", alias="EBAY_FINDING_SERVICE_VERSION")
    ebay_shopping_endpoint: str = Field(
        "https://open.api.ebay.com/shopping",
        alias="EBAY_SHOPPING_ENDPOINT",
        description="Shopping API endpoint.",
    )
    ebay_shopping_api_version: str = Field("967", alias="EBAY_SHOPPING_API_VERSION")
    ebay_site_id: str = Field("0", alias="EBAY_SITE_ID", description="eBay site id (0 = US).")
    ebay_token_endpoint: str = Field(
        "https://api.ebay.com/identity/v1/oauth2/token",
        alias="EBAY_TOKEN_ENDPOINT",
        description="OAuth token endpoint for the client-credentials grant.",
    )
    ebay_oauth_scope: str = Field("https://api.ebay.com/oauth/api_scope", alias="EBAY_OAUTH_SCOPE")
    ebay_timeout_seconds: PositiveInt = Field(10, alias="EBAY_TIMEOUT_SECONDS", description="eBay HTTP timeout (s).")
    ebay_page_size: PositiveInt = Field(10, alias="EBAY_PAGE_SIZE", description="Finding API page size (<=100).")
    ebay_max_pages: PositiveInt = Field(1, alias="EBAY_MAX_PAGES", description="Last page to fetch.")
    sync_batch_size: PositiveInt = Field(10, alias="SYNC_BATCH_SIZE", description="Listings per enrich/publish batch.")
    api_min_interval_ms: PositiveInt = Field(
        100,
        alias="API_MIN_INTERVAL_MS",
        description="Minimum spacing between outbound calls (ms).",
    )
    page_retry_delay_seconds: PositiveFloat = Field(1.0, alias="PAGE_RETRY_DELAY_SECONDS")
    batch_delay_seconds: PositiveFloat = Field(2.0, alias="BATCH_DELAY_SECONDS")
    token_refresh_interval_seconds: PositiveInt = Field(3600, alias="TOKEN_REFRESH_INTERVAL_SECONDS")
    sync_interval_seconds: PositiveInt = Field(60, alias="SYNC_INTERVAL_SECONDS", description="Beat period (s).")
    sync_enabled: bool = Field(True, alias="SYNC_ENABLED", description="Whether the beat entry is installed.")
    sync_lock_ttl_seconds: PositiveInt = Field(
        900,
        alias="SYNC_LOCK_TTL_SECONDS",
        description="Expiry of the overlapping-run lock (s).",
    )
    structlog_level: str = Field("INFO", alias="STRUCTLOG_LEVEL", description="Log level.")
    log_json: bool = Field(False, alias="LOG_JSON", description="Emit logs as JSON lines.")
    celery_worker_concurrency: PositiveInt = Field(1, alias="CELERY_WORKER_CONCURRENCY")
    celery_task_soft_time_limit: PositiveInt = Field(600, alias="CELERY_TASK_SOFT_TIME_LIMIT")

    @field_validator("ebay_store_name", "ebay_app_id")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("value must not be blank")
        return stripped

    @field_validator("ebay_page_size")
    @classmethod
    def _validate_page_size(cls, v: int) -> int:
        if v > 100:
            raise ValueError("EBAY_PAGE_SIZE must be 100 or less")
        return v

    @property
    def oauth_client_id(self) -> str:
        return self.ebay_client_id or self.ebay_app_id

    @property
    def oauth_client_secret(self) -> str:
        secret = self.ebay_client_secret or self.ebay_cert_id
        return secret.get_secret_value() if secret else ""


@lru_cache()
def get_settings() -> Settings:
    """Build Settings from the environment."""
    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"Environment validation failed: {exc}") from exc


def reset_settings_cache() -> None:
    """Clear the Settings cache (tests)."""
    get_settings.cache_clear()  # type: ignore[attr-defined]
