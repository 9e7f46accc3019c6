"""Order aggregate (CQRS): the settled result of a checkout.

The order holds customer contact details, money totals and two independent
status machines (payment and delivery). Its lines live in the OrderItem
aggregate; ``items_snapshot`` is a receipt projection written once at
creation and never updated afterwards.

Delivery State Machine:
    PENDING → PICKED_UP → IN_TRANSIT → DELIVERED
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import InvalidStatusTransition, OrderNotFound
from marketplace.identifiers import generate_order_number
from marketplace.order.events import OrderDeliveryStatusChanged, OrderPaymentStatusChanged, OrderPlaced
from marketplace.payment.payment import PAYMENT_TRANSITIONS, PaymentMethod, PaymentStatus


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class DeliveryStatus(Enum):
    PENDING = "PENDING"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"


DELIVERY_TRANSITIONS = {
    DeliveryStatus.PENDING: {DeliveryStatus.PICKED_UP},
    DeliveryStatus.PICKED_UP: {DeliveryStatus.IN_TRANSIT, DeliveryStatus.DELIVERED},
    DeliveryStatus.IN_TRANSIT: {DeliveryStatus.DELIVERED},
    DeliveryStatus.DELIVERED: set(),
}


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    order_number = String(required=True, unique=True, max_length=30)
    customer_id = Identifier()

    # Contact & address
    customer_name = String(required=True, max_length=255)
    customer_phone = String(required=True, max_length=30)
    customer_email = String(max_length=255)
    customer_address = String(required=True, max_length=500)
    customer_city = String(max_length=100)
    customer_region = String(max_length=100)
    delivery_notes = Text()
    notes = Text()

    # Receipt projection: [{product_id, name, price, quantity}]
    items_snapshot = Text()

    payment_method = String(choices=PaymentMethod, required=True)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    delivery_status = String(choices=DeliveryStatus, default=DeliveryStatus.PENDING.value)

    # Money
    subtotal = Float(required=True, min_value=0.0)
    delivery_fee = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="XAF")

    supplier_count = Integer(default=1, min_value=1)

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, customer, payment_method, lines, subtotal, delivery_fee, supplier_count, currency, notes=None):
        """Create a PENDING order from priced cart lines.

        ``customer`` is a mapping of the contact/address fields.
        """
        now = datetime.now(UTC)
        snapshot = [
            {
                "product_id": line.product_id,
                "name": line.name,
                "price": line.unit_price,
                "quantity": line.quantity,
            }
            for line in lines
        ]

        order = cls(
            order_number=generate_order_number(now),
            customer_id=customer.get("customer_id"),
            customer_name=customer["name"],
            customer_phone=customer["phone"],
            customer_email=customer.get("email"),
            customer_address=customer["address"],
            customer_city=customer.get("city"),
            customer_region=customer.get("region"),
            delivery_notes=customer.get("delivery_notes"),
            notes=notes,
            items_snapshot=json.dumps(snapshot),
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING.value,
            delivery_status=DeliveryStatus.PENDING.value,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            discount=0.0,
            total=subtotal + delivery_fee,
            currency=currency,
            supplier_count=max(supplier_count, 1),
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                subtotal=order.subtotal,
                delivery_fee=order.delivery_fee,
                total=order.total,
                item_count=sum(line.quantity for line in lines),
                supplier_count=order.supplier_count,
                placed_at=now,
            )
        )
        return order

    def receipt_lines(self) -> list[dict]:
        return json.loads(self.items_snapshot) if self.items_snapshot else []

    # -------------------------------------------------------------------
    # Status updates
    # -------------------------------------------------------------------
    def record_payment_status(self, target: PaymentStatus) -> None:
        current = PaymentStatus(self.payment_status)
        if target == current:
            return
        if target not in PAYMENT_TRANSITIONS[current]:
            raise InvalidStatusTransition(
                f"Cannot transition order payment from {current.value} to {target.value}",
                order_id=str(self.id),
            )

        self.payment_status = target.value
        self.updated_at = datetime.now(UTC)
        self.raise_(
            OrderPaymentStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
            )
        )

    def record_delivery_status(self, target: DeliveryStatus) -> None:
        current = DeliveryStatus(self.delivery_status)
        if target == current:
            return
        if target not in DELIVERY_TRANSITIONS[current]:
            raise InvalidStatusTransition(
                f"Cannot transition delivery from {current.value} to {target.value}",
                order_id=str(self.id),
            )

        self.delivery_status = target.value
        self.updated_at = datetime.now(UTC)
        self.raise_(
            OrderDeliveryStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
            )
        )


def load_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise OrderNotFound(f"Order {order_id} not found", order_id=str(order_id)) from None
