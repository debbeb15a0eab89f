from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "sqlite+aiosqlite:///./loyalty_connector.db"
    tracing_enabled: bool = True
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    operator_api_key: str = ""
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Storefront defaults
    default_currency: str = "USD"

    # Loyalty Cloud connection
    loyalty_cloud_endpoint: str = "https://login.salesforce.com"
    loyalty_cloud_api_version: str = "62.0"
    loyalty_cloud_program_name: str = ""
    loyalty_cloud_client_id: str = ""
    loyalty_cloud_client_secret: str = ""
    loyalty_cloud_username: str = ""
    loyalty_cloud_password: str = ""
    loyalty_cloud_secret_token: str = ""
    loyalty_cloud_timeout_seconds: float = 10.0
    loyalty_cloud_qualifying_currency_name: str = "Qualifying Points"
    loyalty_cloud_non_qualifying_currency_name: str = "Non-Qualifying Points"

    # Member enrollment + voucher issuance
    loyalty_default_website: str = ""
    loyalty_voucher_min_points: int = 1000
    loyalty_points_per_currency_unit: int = 100
    loyalty_voucher_validity_days: int = 365

    # Credential + program configuration sync
    loyalty_cloud_sync_enabled: bool = False
    loyalty_cloud_sync_interval_seconds: int = 60 * 60
    loyalty_cloud_sync_run_on_start: bool = True

    @field_validator("loyalty_cloud_endpoint", mode="before")
    @classmethod
    def _strip_endpoint(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value

    @field_validator("loyalty_cloud_api_version", mode="before")
    @classmethod
    def _normalize_version(cls, value: object) -> object:
        if isinstance(value, (int, float)):
            value = f"{value:.1f}"
        if isinstance(value, str):
            return value.strip().lstrip("vV")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
