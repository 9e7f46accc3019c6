"""In-memory channel adapters used in development and tests."""

from uuid import uuid4

from marketplace.notification.channel.ports import EmailPort, InvoicePort, SMSPort


class _FakeAdapter:
    default_failure = "Delivery failed"

    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = self.default_failure

    def configure(self, should_succeed: bool = True, failure_reason: str | None = None):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason or self.default_failure

    def reset(self):
        self.sent.clear()
        self.should_succeed = True
        self.failure_reason = self.default_failure

    def _record(self, prefix: str, **record) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"{prefix}-{uuid4().hex[:12]}"
        self.sent.append({"message_id": message_id, **record})
        return {"message_id": message_id, "status": "sent"}


class FakeSMSAdapter(_FakeAdapter, SMSPort):
    default_failure = "SMS delivery failed"

    def send(self, to: str, body: str) -> dict:
        return self._record("sms", to=to, body=body)


class FakeEmailAdapter(_FakeAdapter, EmailPort):
    default_failure = "Email delivery failed"

    def send(self, to: str, subject: str, body: str) -> dict:
        return self._record("email", to=to, subject=subject, body=body)


class FakeInvoiceAdapter(_FakeAdapter, InvoicePort):
    default_failure = "Invoice rendering failed"

    def request_invoice(self, order_id: str) -> dict:
        return self._record("inv", order_id=order_id)
