"""Webhook reconciliation: applies provider outcomes to Payment and Order.

Both the provider's push notifications and ``verify_payment`` polling end up
in ``ProcessPaymentWebhook``. A payment that is already PAID or FAILED is
left untouched, so redelivered notifications have no further effect.
"""

import json

import structlog
from protean import handle
from protean.fields import String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import PaymentNotFound
from marketplace.notification.outbox import enqueue_payment_failed, enqueue_payment_received
from marketplace.order.order import Order, load_order
from marketplace.payment.payment import Payment, PaymentStatus, find_payment_by_transaction_id

logger = structlog.get_logger(__name__)

PROVIDER_STATUS_MAP = {
    "SUCCESSFUL": PaymentStatus.PAID,
    "FAILED": PaymentStatus.FAILED,
    "PENDING": PaymentStatus.PENDING,
}


def map_provider_status(status: str | None) -> PaymentStatus:
    """Translate the provider's vocabulary; anything unrecognised stays PENDING."""
    return PROVIDER_STATUS_MAP.get((status or "").upper(), PaymentStatus.PENDING)


@marketplace.command(part_of="Payment")
class ProcessPaymentWebhook:
    external_id = String(required=True, max_length=50)
    status = String(required=True, max_length=30)
    financial_transaction_id = String(max_length=100)
    reason = String(max_length=500)
    raw_payload = Text()  # JSON body as received


@marketplace.command_handler(part_of=Payment)
class ProcessPaymentWebhookHandler:
    @handle(ProcessPaymentWebhook)
    def process_webhook(self, command):
        payment = find_payment_by_transaction_id(command.external_id)
        target = map_provider_status(command.status)

        if payment.is_terminal:
            if target != PaymentStatus(payment.status) and target != PaymentStatus.PENDING:
                logger.warning(
                    "Conflicting provider status for settled payment ignored",
                    transaction_id=command.external_id,
                    current_status=payment.status,
                    provider_status=command.status,
                )
            else:
                logger.info("Duplicate payment notification ignored", transaction_id=command.external_id)
            return payment.status

        payment.store_webhook_payload(_payload_of(command))
        repo = current_domain.repository_for(Payment)

        if target == PaymentStatus.PENDING:
            repo.add(payment)
            return payment.status

        order = load_order(payment.order_id)
        if target == PaymentStatus.PAID:
            payment.mark_paid(command.financial_transaction_id)
            order.record_payment_status(PaymentStatus.PAID)
            enqueue_payment_received(order)
        else:
            payment.mark_failed(command.reason or "Payment failed")
            order.record_payment_status(PaymentStatus.FAILED)
            enqueue_payment_failed(order, payment.failure_reason)

        repo.add(payment)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Payment reconciled",
            transaction_id=command.external_id,
            order_id=str(order.id),
            status=payment.status,
        )
        return payment.status


def _payload_of(command) -> dict:
    if command.raw_payload:
        try:
            return json.loads(command.raw_payload)
        except ValueError:
            return {"raw": command.raw_payload}
    return {
        "externalId": command.external_id,
        "status": command.status,
        "financialTransactionId": command.financial_transaction_id,
        "reason": command.reason,
    }


def receive_webhook(payload: dict) -> dict:
    """Entry point for provider callbacks.

    Always returns an acknowledgement: unknown transactions and processing
    errors are logged here and never reported back to the provider.
    """
    external_id = payload.get("externalId")
    reason = payload.get("reason")
    if isinstance(reason, dict):
        reason = reason.get("message") or reason.get("code")

    if not external_id:
        logger.warning("Payment webhook without externalId dropped", payload=payload)
        return {"received": True, "status": None}

    try:
        status = current_domain.process(
            ProcessPaymentWebhook(
                external_id=str(external_id),
                status=str(payload.get("status") or "PENDING"),
                financial_transaction_id=payload.get("financialTransactionId"),
                reason=reason,
                raw_payload=json.dumps(payload, default=str),
            ),
            asynchronous=False,
        )
    except PaymentNotFound:
        logger.warning("Payment webhook for unknown transaction", transaction_id=external_id)
        return {"received": True, "status": None}
    except Exception as exc:
        logger.error("Payment webhook processing failed", transaction_id=external_id, error=str(exc))
        return {"received": True, "status": None}

    return {"received": True, "status": status}
