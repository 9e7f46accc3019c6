"""Domain events for the Payment aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Payment")
class PaymentInitiated:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    transaction_id = String(required=True)
    provider = String(required=True)
    amount = Float(required=True)
    initiated_at = DateTime(required=True)


@marketplace.event(part_of="Payment")
class PaymentConfirmed:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    transaction_id = String()
    provider_reference = String()
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@marketplace.event(part_of="Payment")
class PaymentFailed:
    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    transaction_id = String()
    reason = String()
    failed_at = DateTime(required=True)
