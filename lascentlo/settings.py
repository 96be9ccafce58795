"""
Settings — environment-driven configuration.

Every value can be overridden with a LASCENTLO_-prefixed environment
variable or a .env file in the working directory.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LASCENTLO_",
        env_file=".env",
        extra="ignore",
    )

    # Storage
    database_url: str = "sqlite+aiosqlite:///./lascentlo.db"

    # Sessions
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_ttl_days: int = 30
    reset_token_ttl_minutes: int = 60
    password_hash_rounds: int = 29000

    # Payments
    stripe_secret_key: str = ""
    currency: str = "usd"
    payment_timeout_seconds: float = 10.0
    confirmation_ttl_seconds: int = 900

    # Pricing
    tax_rate: Decimal = Decimal("0.10")
    free_shipping_threshold_cents: int = 10000
    flat_shipping_cents: int = 1000
    delivery_estimate_days: int = 7

    # Notifications
    outbox_max_attempts: int = 5
    outbox_batch_size: int = 50
    client_url: str = "http://localhost:3000"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # HTTP
    cors_origins: list[str] = ["http://localhost:3000"]


__all__ = ("Settings",)
