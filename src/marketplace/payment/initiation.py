"""Payment initiation: asks the provider to collect an order's total.

The command handler commits whatever the provider told us (reference stored,
payment failed, or still pending after a timeout). ``initiate_payment`` then
raises for the caller when the provider call did not go through, so the
recorded outcome survives the error.
"""

from uuid import uuid4

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import ExternalProviderError
from marketplace.identifiers import generate_transaction_id
from marketplace.order.order import Order, load_order
from marketplace.payment.gateway import get_gateway
from marketplace.payment.gateway.port import GatewayError, GatewayTimeout, PaymentRequest
from marketplace.payment.payment import Payment, PaymentProvider, PaymentStatus, find_payment_for_order

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Payment")
class InitiatePayment:
    order_id = Identifier(required=True)
    phone_number = String(required=True, max_length=30)
    provider = String(choices=PaymentProvider, default=PaymentProvider.MTN_MOMO.value)


@marketplace.command_handler(part_of=Payment)
class InitiatePaymentHandler:
    @handle(InitiatePayment)
    def initiate_payment(self, command):
        order = load_order(command.order_id)
        payment = find_payment_for_order(order.id)

        transaction_id = generate_transaction_id()
        payment.start_attempt(
            transaction_id=transaction_id,
            provider=command.provider or PaymentProvider.MTN_MOMO.value,
            phone_number=command.phone_number,
        )

        request = PaymentRequest(
            amount=payment.amount,
            currency=payment.currency,
            external_id=transaction_id,
            payer_phone=command.phone_number,
            reference_id=str(uuid4()),
            payer_message=f"Payment for order {order.order_number}",
            payee_note=f"Order {order.order_number}",
        )

        error = None
        try:
            payment.record_provider_reference(get_gateway().request_to_pay(request))
        except GatewayTimeout as exc:
            # Outcome unknown: keep PENDING and let verify poll the reference
            payment.record_provider_reference(request.reference_id)
            error = str(exc)
            logger.warning("Payment initiation timed out", order_id=str(order.id), transaction_id=transaction_id)
        except GatewayError as exc:
            payment.mark_failed(str(exc))
            order.record_payment_status(PaymentStatus.FAILED)
            current_domain.repository_for(Order).add(order)
            error = str(exc)
            logger.error(
                "Payment initiation failed",
                order_id=str(order.id),
                transaction_id=transaction_id,
                error=error,
            )

        current_domain.repository_for(Payment).add(payment)
        return {
            "payment_id": str(payment.id),
            "order_id": str(order.id),
            "transaction_id": transaction_id,
            "provider_reference": payment.provider_reference,
            "status": payment.status,
            "error": error,
        }


def initiate_payment(order_id, phone_number, provider=PaymentProvider.MTN_MOMO.value) -> dict:
    """Start a mobile-money collection; raises ExternalProviderError if the provider call failed."""
    outcome = current_domain.process(
        InitiatePayment(order_id=order_id, phone_number=phone_number, provider=provider),
        asynchronous=False,
    )
    if outcome["error"]:
        raise ExternalProviderError(
            f"Payment provider error: {outcome['error']}",
            transaction_id=outcome["transaction_id"],
            payment_status=outcome["status"],
        )
    return outcome
