"""Delivery aggregate: the courier leg of an order."""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import InvalidStatusTransition, NotFound
from marketplace.identifiers import generate_tracking_number
from marketplace.order.order import DELIVERY_TRANSITIONS, DeliveryStatus


@marketplace.aggregate
class Delivery:
    order_id = Identifier(required=True)
    tracking_number = String(required=True, max_length=30)
    status = String(choices=DeliveryStatus, default=DeliveryStatus.PENDING.value)
    notes = Text()
    picked_up_at = DateTime()
    delivered_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def open(cls, order_id):
        now = datetime.now(UTC)
        return cls(
            order_id=order_id,
            tracking_number=generate_tracking_number(),
            status=DeliveryStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )

    def advance_to(self, target: DeliveryStatus, notes=None) -> None:
        current = DeliveryStatus(self.status)
        if target not in DELIVERY_TRANSITIONS[current]:
            raise InvalidStatusTransition(
                f"Cannot transition delivery from {current.value} to {target.value}",
                delivery_id=str(self.id),
            )

        now = datetime.now(UTC)
        self.status = target.value
        if target == DeliveryStatus.PICKED_UP:
            self.picked_up_at = now
        elif target == DeliveryStatus.DELIVERED:
            self.delivered_at = now
        if notes:
            self.notes = notes
        self.updated_at = now


def find_delivery_for_order(order_id) -> Delivery:
    deliveries = current_domain.repository_for(Delivery)._dao.query.filter(order_id=str(order_id)).limit(None).all().items
    if not deliveries:
        raise NotFound("Delivery record not found for order", code="delivery_not_found", order_id=str(order_id))
    return deliveries[0]
