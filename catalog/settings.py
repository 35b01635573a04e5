"""Settings for the Wix Stores (catalog) side."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, PositiveInt, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WixSettings(BaseSettings):
    """Environment-driven configuration for product publishing."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    wix_auth_token: SecretStr = Field(..., alias="WIX_AUTH_TOKEN", description="Wix API key / bearer token")
    wix_site_id: str = Field(..., alias="WIX_SITE_ID", description="Target Wix site id")
    wix_api_base: str = Field("https://www.wixapis.com/stores/v1", alias="WIX_API_BASE", description="Stores API base")
    wix_timeout_seconds: PositiveInt = Field(15, alias="WIX_TIMEOUT_SECONDS", description="HTTP timeout in seconds")
    description_max_length: PositiveInt = Field(8000, alias="WIX_DESCRIPTION_MAX_LENGTH")
    meta_description_max_length: PositiveInt = Field(160, alias="WIX_META_DESCRIPTION_MAX_LENGTH")
    default_currency: str = Field("USD", alias="WIX_DEFAULT_CURRENCY")
    brand_placeholder: str = Field("Unbranded", alias="WIX_BRAND_PLACEHOLDER")
    clean_description: bool = Field(
        False,
        alias="WIX_CLEAN_DESCRIPTION",
        description="Strip HTML and eBay reference numbers from descriptions",
    )

    @field_validator("wix_site_id")
    @classmethod
    def _non_empty_site_id(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("WIX_SITE_ID must not be blank")
        return s

    @field_validator("wix_api_base")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache()
def get_wix_settings() -> WixSettings:
    try:
        return WixSettings()
    except ValidationError as exc:
        raise RuntimeError(f"Wix settings validation failed: {exc}") from exc


def reset_wix_settings_cache() -> None:
    get_wix_settings.cache_clear()  # type: ignore[attr-defined]
