"""Configurable fake mobile-money gateway for development and testing.

Simulates the provider without any network calls: charges can be set to
succeed, fail or time out, and the status reported for each reference can
be scripted.
"""

from marketplace.payment.gateway.port import (
    GatewayError,
    GatewayTimeout,
    MobileMoneyGateway,
    PaymentRequest,
    StatusResult,
)


class FakeGateway(MobileMoneyGateway):
    """Configurable fake gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.should_time_out: bool = False
        self.failure_reason: str = "Request to pay rejected"
        self.statuses: dict[str, StatusResult] = {}
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Request to pay rejected",
        should_time_out: bool = False,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.should_time_out = should_time_out

    def set_status(self, reference_id: str, status: str, financial_transaction_id=None, reason=None) -> None:
        """Script what ``get_status`` reports for a reference."""
        raw = {"status": status, "financialTransactionId": financial_transaction_id, "reason": reason}
        self.statuses[reference_id] = StatusResult(
            status=status,
            financial_transaction_id=financial_transaction_id,
            reason=reason,
            raw={k: v for k, v in raw.items() if v is not None},
        )

    def request_to_pay(self, request: PaymentRequest) -> str:
        self.calls.append(
            {
                "method": "request_to_pay",
                "amount": request.amount,
                "currency": request.currency,
                "external_id": request.external_id,
                "payer_phone": request.payer_phone,
                "reference_id": request.reference_id,
            }
        )

        if self.should_time_out:
            raise GatewayTimeout("Timed out waiting for the provider")
        if not self.should_succeed:
            raise GatewayError(self.failure_reason)
        return request.reference_id

    def get_status(self, reference_id: str) -> StatusResult:
        self.calls.append({"method": "get_status", "reference_id": reference_id})

        if self.should_time_out:
            raise GatewayTimeout("Timed out waiting for the provider")
        return self.statuses.get(reference_id, StatusResult(status="PENDING", raw={"status": "PENDING"}))
