"""Runtime settings read from the environment.

Protean's own configuration (providers, processing modes) lives in
``domain.toml``; everything the settlement rules need is collected here.
"""

import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else default


@dataclass(frozen=True)
class Settings:
    delivery_fee: float = 2000.0
    free_delivery_threshold: float = 100000.0
    currency: str = "XAF"
    default_commission_rate: float = 10.0

    momo_base_url: str = "https://sandbox.momodeveloper.mtn.com"
    momo_subscription_key: str = ""
    momo_api_user: str = ""
    momo_api_key: str = ""
    momo_environment: str = "sandbox"
    momo_callback_url: str | None = None
    momo_timeout_seconds: float = 15.0

    notification_max_retries: int = 3

    def delivery_fee_for(self, subtotal: float) -> float:
        """Flat fee, waived once the subtotal reaches the free-delivery threshold."""
        if subtotal >= self.free_delivery_threshold:
            return 0.0
        return self.delivery_fee


def load_settings() -> Settings:
    return Settings(
        delivery_fee=_env_float("DELIVERY_FEE", 2000.0),
        free_delivery_threshold=_env_float("FREE_DELIVERY_THRESHOLD", 100000.0),
        currency=os.getenv("CURRENCY", "XAF"),
        default_commission_rate=_env_float("DEFAULT_COMMISSION_RATE", 10.0),
        momo_base_url=os.getenv("MOMO_BASE_URL", "https://sandbox.momodeveloper.mtn.com"),
        momo_subscription_key=os.getenv("MOMO_SUBSCRIPTION_KEY", ""),
        momo_api_user=os.getenv("MOMO_API_USER", ""),
        momo_api_key=os.getenv("MOMO_API_KEY", ""),
        momo_environment=os.getenv("MOMO_ENVIRONMENT", "sandbox"),
        momo_callback_url=os.getenv("MOMO_CALLBACK_URL") or None,
        momo_timeout_seconds=_env_float("MOMO_TIMEOUT_SECONDS", 15.0),
        notification_max_retries=_env_int("NOTIFICATION_MAX_RETRIES", 3),
    )
