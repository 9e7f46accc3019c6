"""Mobile-money gateway port (abstract interface).

Adapters translate between the provider's HTTP API and these value types.
Network timeouts surface as ``GatewayTimeout`` so callers can leave a
payment pending instead of guessing the outcome.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class GatewayError(Exception):
    """The provider rejected the call or could not be reached."""


class GatewayTimeout(GatewayError):
    """The provider did not answer within the configured timeout."""


@dataclass(frozen=True)
class PaymentRequest:
    """A request-to-pay keyed by our transaction id."""

    amount: float
    currency: str
    external_id: str
    payer_phone: str
    reference_id: str
    payer_message: str = ""
    payee_note: str = ""


@dataclass(frozen=True)
class StatusResult:
    """Provider-side view of a request-to-pay."""

    status: str  # SUCCESSFUL | FAILED | PENDING
    financial_transaction_id: str | None = None
    reason: str | None = None
    raw: dict = field(default_factory=dict)


class MobileMoneyGateway(ABC):
    """Abstract mobile-money collection interface."""

    @abstractmethod
    def request_to_pay(self, request: PaymentRequest) -> str:
        """Ask the payer to approve a charge. Returns the provider reference."""
        ...

    @abstractmethod
    def get_status(self, reference_id: str) -> StatusResult:
        """Look up the current state of a request-to-pay."""
        ...
