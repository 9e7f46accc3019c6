"""Mobile-money gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- MomoGateway when MoMo credentials are configured
- FakeGateway otherwise (development and tests)
"""

from marketplace.config import load_settings
from marketplace.payment.gateway.fake_adapter import FakeGateway
from marketplace.payment.gateway.momo_adapter import MomoGateway
from marketplace.payment.gateway.port import MobileMoneyGateway

_current_gateway: MobileMoneyGateway | None = None


def build_gateway() -> MobileMoneyGateway:
    settings = load_settings()
    if settings.momo_api_user and settings.momo_api_key and settings.momo_subscription_key:
        return MomoGateway(settings)
    return FakeGateway()


def get_gateway() -> MobileMoneyGateway:
    """Return the active gateway, building one from settings on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_gateway()
    return _current_gateway


def set_gateway(gateway: MobileMoneyGateway) -> None:
    """Override the active gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
