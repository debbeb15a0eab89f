"""Immutable Loyalty Cloud connection settings handed to the gateway and services."""

from __future__ import annotations

from dataclasses import dataclass

from loyalty_api.core.settings import Settings, get_settings


@dataclass(frozen=True)
class LoyaltyCloudConfig:
    endpoint: str
    api_version: str
    program_name: str
    client_id: str = ""
    client_secret: str = ""
    username: str = ""
    password: str = ""
    secret_token: str = ""
    timeout_seconds: float = 10.0
    qualifying_currency_name: str = "Qualifying Points"
    non_qualifying_currency_name: str = "Non-Qualifying Points"
    default_website: str = ""
    default_currency: str = "USD"
    voucher_min_points: int = 1000
    points_per_currency_unit: int = 100
    voucher_validity_days: int = 365

    @property
    def base_url(self) -> str:
        return f"{self.endpoint}/services/data/v{self.api_version}"

    @property
    def token_url(self) -> str:
        return f"{self.endpoint}/services/oauth2/token"

    @property
    def full_password(self) -> str:
        return f"{self.password}{self.secret_token}" if self.secret_token else self.password

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "LoyaltyCloudConfig":
        current = source or get_settings()
        return cls(
            endpoint=current.loyalty_cloud_endpoint,
            api_version=current.loyalty_cloud_api_version,
            program_name=current.loyalty_cloud_program_name,
            client_id=current.loyalty_cloud_client_id,
            client_secret=current.loyalty_cloud_client_secret,
            username=current.loyalty_cloud_username,
            password=current.loyalty_cloud_password,
            secret_token=current.loyalty_cloud_secret_token,
            timeout_seconds=current.loyalty_cloud_timeout_seconds,
            qualifying_currency_name=current.loyalty_cloud_qualifying_currency_name,
            non_qualifying_currency_name=current.loyalty_cloud_non_qualifying_currency_name,
            default_website=current.loyalty_default_website,
            default_currency=current.default_currency,
            voucher_min_points=current.loyalty_voucher_min_points,
            points_per_currency_unit=current.loyalty_points_per_currency_unit,
            voucher_validity_days=current.loyalty_voucher_validity_days,
        )


__all__ = ["LoyaltyCloudConfig"]
