"""Payment verification by polling the provider."""

import json

import structlog
from protean.utils.globals import current_domain

from marketplace.payment.gateway import get_gateway
from marketplace.payment.gateway.port import GatewayError
from marketplace.payment.payment import PaymentStatus, find_payment_by_transaction_id
from marketplace.payment.webhook import ProcessPaymentWebhook, map_provider_status

logger = structlog.get_logger(__name__)


def verify_payment(transaction_id: str) -> str:
    """Return the payment's status, asking the provider while it is still PENDING.

    A terminal answer from the provider is applied through the webhook
    handler so polling and push notifications share one code path.
    """
    payment = find_payment_by_transaction_id(transaction_id)
    if payment.is_terminal or not payment.provider_reference:
        return payment.status

    try:
        result = get_gateway().get_status(payment.provider_reference)
    except GatewayError as exc:
        logger.warning("Payment verification failed", transaction_id=transaction_id, error=str(exc))
        return payment.status

    if map_provider_status(result.status) == PaymentStatus.PENDING:
        return payment.status

    return current_domain.process(
        ProcessPaymentWebhook(
            external_id=transaction_id,
            status=result.status,
            financial_transaction_id=result.financial_transaction_id,
            reason=result.reason,
            raw_payload=json.dumps(result.raw or {"status": result.status}, default=str),
        ),
        asynchronous=False,
    )
