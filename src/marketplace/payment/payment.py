"""Payment aggregate (CQRS): one per order, reconciled against a mobile-money provider.

State Machine:
    PENDING → PAID
    PENDING → FAILED

PAID and FAILED are terminal. A payment never returns to PENDING, so a
repeated provider notification for a settled payment changes nothing.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import (
    AlreadyPaid,
    InvalidStatusTransition,
    PaymentClosed,
    PaymentNotFound,
    PaymentRecordMissing,
)
from marketplace.payment.events import PaymentConfirmed, PaymentFailed, PaymentInitiated


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class PaymentStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"


class PaymentMethod(Enum):
    MOMO = "MOMO"
    COD = "COD"


class PaymentProvider(Enum):
    MTN_MOMO = "MTN_MOMO"
    AIRTEL_MONEY = "AIRTEL_MONEY"
    ORANGE_MONEY = "ORANGE_MONEY"


# ---------------------------------------------------------------------------
# State Machine
# ---------------------------------------------------------------------------
PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.PAID: set(),
    PaymentStatus.FAILED: set(),
}

TERMINAL_STATUSES = {PaymentStatus.PAID, PaymentStatus.FAILED}


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Payment:
    order_id = Identifier(required=True)
    method = String(choices=PaymentMethod, required=True)
    provider = String(choices=PaymentProvider)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="XAF")
    phone_number = String(max_length=30)

    # Correlation
    transaction_id = String(max_length=50)  # ours, sent as externalId
    provider_reference = String(max_length=100)  # theirs

    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    failure_reason = String(max_length=500)
    webhook_payload = Text()  # last raw provider notification, JSON

    initiated_at = DateTime()
    paid_at = DateTime()
    failed_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, order_id, method, amount, currency, phone_number=None):
        now = datetime.now(UTC)
        return cls(
            order_id=order_id,
            method=method,
            amount=amount,
            currency=currency,
            phone_number=phone_number,
            status=PaymentStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_terminal(self) -> bool:
        return PaymentStatus(self.status) in TERMINAL_STATUSES

    def _assert_can_transition(self, target: PaymentStatus) -> None:
        current = PaymentStatus(self.status)
        if target not in PAYMENT_TRANSITIONS[current]:
            raise InvalidStatusTransition(
                f"Cannot transition payment from {current.value} to {target.value}",
                payment_id=str(self.id),
            )

    # -------------------------------------------------------------------
    # Provider interaction
    # -------------------------------------------------------------------
    def start_attempt(self, transaction_id, provider, phone_number) -> None:
        """Bind a fresh transaction id before asking the provider to charge."""
        status = PaymentStatus(self.status)
        if status == PaymentStatus.PAID:
            raise AlreadyPaid("Order is already paid", order_id=str(self.order_id))
        if status == PaymentStatus.FAILED:
            raise PaymentClosed("Payment has already failed", order_id=str(self.order_id))

        now = datetime.now(UTC)
        self.transaction_id = transaction_id
        self.provider = provider
        self.phone_number = phone_number
        self.provider_reference = None
        self.initiated_at = now
        self.updated_at = now

        self.raise_(
            PaymentInitiated(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                transaction_id=transaction_id,
                provider=provider,
                amount=self.amount,
                initiated_at=now,
            )
        )

    def record_provider_reference(self, reference) -> None:
        self.provider_reference = reference
        self.updated_at = datetime.now(UTC)

    def store_webhook_payload(self, payload: dict) -> None:
        self.webhook_payload = json.dumps(payload, sort_keys=True, default=str)
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Outcomes
    # -------------------------------------------------------------------
    def mark_paid(self, provider_reference=None) -> None:
        self._assert_can_transition(PaymentStatus.PAID)

        now = datetime.now(UTC)
        self.status = PaymentStatus.PAID.value
        self.provider_reference = provider_reference or self.provider_reference
        self.paid_at = now
        self.updated_at = now

        self.raise_(
            PaymentConfirmed(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                transaction_id=self.transaction_id,
                provider_reference=self.provider_reference,
                amount=self.amount,
                paid_at=now,
            )
        )

    def mark_failed(self, reason) -> None:
        self._assert_can_transition(PaymentStatus.FAILED)

        now = datetime.now(UTC)
        self.status = PaymentStatus.FAILED.value
        self.failure_reason = (reason or "Payment failed")[:500]
        self.failed_at = now
        self.updated_at = now

        self.raise_(
            PaymentFailed(
                payment_id=str(self.id),
                order_id=str(self.order_id),
                transaction_id=self.transaction_id,
                reason=self.failure_reason,
                failed_at=now,
            )
        )


def find_payment_for_order(order_id) -> Payment:
    payments = current_domain.repository_for(Payment)._dao.query.filter(order_id=str(order_id)).limit(None).all().items
    if not payments:
        raise PaymentRecordMissing("Payment record not found for order", order_id=str(order_id))
    return payments[0]


def find_payment_by_transaction_id(transaction_id) -> Payment:
    payments = (
        current_domain.repository_for(Payment)._dao.query.filter(transaction_id=str(transaction_id)).limit(None).all().items
    )
    if not payments:
        raise PaymentNotFound("Payment not found", transaction_id=str(transaction_id))
    return payments[0]
