"""Human-readable reference numbers handed to customers and providers."""

import secrets
import string
from datetime import UTC, datetime

_UPPER_ALNUM = string.ascii_uppercase + string.digits
_URL_SAFE = string.ascii_letters + string.digits + "_-"


def _random(length: int, alphabet: str = _UPPER_ALNUM) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_order_number(now: datetime | None = None) -> str:
    """``ORD-YYYYMMDD-XXXXX``"""
    now = now or datetime.now(UTC)
    return f"ORD-{now:%Y%m%d}-{_random(5)}"


def generate_tracking_number() -> str:
    return f"TRK-{_random(12)}"


def generate_transaction_id() -> str:
    return f"TXN-{_random(12)}"


def generate_public_id() -> str:
    """Opaque 21 character id used to address carts from the outside."""
    return _random(21, _URL_SAFE)
