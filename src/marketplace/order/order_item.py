"""OrderItem aggregate (CQRS): one supplier's share of an order.

The commission rate is copied from the supplier when the order is placed and
the commission amount is computed once from it. Later changes to the
supplier's rate never touch existing items.

Fulfillment State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    any non-terminal state → CANCELLED
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import Conflict, InvalidStatusTransition, OrderItemNotFound
from marketplace.order.events import FulfillmentStatusChanged, OrderItemClaimedByPayout


class FulfillmentStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


FULFILLMENT_TRANSITIONS = {
    FulfillmentStatus.PENDING: {FulfillmentStatus.CONFIRMED, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.CONFIRMED: {FulfillmentStatus.PROCESSING, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.PROCESSING: {FulfillmentStatus.SHIPPED, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.SHIPPED: {FulfillmentStatus.DELIVERED, FulfillmentStatus.CANCELLED},
    FulfillmentStatus.DELIVERED: set(),
    FulfillmentStatus.CANCELLED: set(),
}

# Status → timestamp field stamped the first time the status is reached
_STATUS_TIMESTAMPS = {
    FulfillmentStatus.CONFIRMED: "confirmed_at",
    FulfillmentStatus.PROCESSING: "processing_at",
    FulfillmentStatus.SHIPPED: "shipped_at",
    FulfillmentStatus.DELIVERED: "delivered_at",
    FulfillmentStatus.CANCELLED: "cancelled_at",
}


def commission_for(total_price: float, rate: float) -> float:
    return round(total_price * rate / 100, 2)


@marketplace.aggregate
class OrderItem:
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    supplier_id = Identifier()  # None for platform-owned inventory

    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    total_price = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="XAF")
    position = Integer(default=0)  # line order within the order

    commission_rate = Float(default=0.0, min_value=0.0, max_value=100.0)
    commission_amount = Float(default=0.0, min_value=0.0)

    fulfillment_status = String(choices=FulfillmentStatus, default=FulfillmentStatus.PENDING.value)
    tracking_number = String(max_length=100)
    notes = Text()

    confirmed_at = DateTime()
    processing_at = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()

    payout_id = Identifier()  # set once a payout includes this item

    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def commission_matches_frozen_rate(self):
        if self.total_price is None or self.commission_rate is None or self.commission_amount is None:
            return
        if abs(self.commission_amount - commission_for(self.total_price, self.commission_rate)) > 0.005:
            raise ValidationError({"commission_amount": ["Commission does not match the frozen rate"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, order_id, line, commission_rate, currency, position=0):
        """Build an item from a priced cart line with the supplier's rate at this instant."""
        now = datetime.now(UTC)
        total_price = line.unit_price * line.quantity
        return cls(
            order_id=order_id,
            product_id=line.product_id,
            product_name=line.name,
            supplier_id=line.supplier_id,
            unit_price=line.unit_price,
            quantity=line.quantity,
            total_price=total_price,
            currency=currency,
            position=position,
            commission_rate=commission_rate,
            commission_amount=commission_for(total_price, commission_rate),
            fulfillment_status=FulfillmentStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )

    @property
    def net_amount(self) -> float:
        return self.total_price - self.commission_amount

    def belongs_to(self, supplier_id) -> bool:
        return self.supplier_id is not None and str(self.supplier_id) == str(supplier_id)

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def advance_to(self, target: FulfillmentStatus, tracking_number=None, notes=None) -> None:
        current = FulfillmentStatus(self.fulfillment_status)
        if target not in FULFILLMENT_TRANSITIONS[current]:
            raise InvalidStatusTransition(
                f"Cannot transition fulfillment from {current.value} to {target.value}",
                order_item_id=str(self.id),
            )

        now = datetime.now(UTC)
        self.fulfillment_status = target.value
        stamp = _STATUS_TIMESTAMPS.get(target)
        if stamp and getattr(self, stamp) is None:
            setattr(self, stamp, now)
        if tracking_number:
            self.tracking_number = tracking_number
        if notes:
            self.notes = notes
        self.updated_at = now

        self.raise_(
            FulfillmentStatusChanged(
                order_item_id=str(self.id),
                order_id=str(self.order_id),
                supplier_id=str(self.supplier_id) if self.supplier_id else None,
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Settlement
    # -------------------------------------------------------------------
    def claim_for_payout(self, payout_id) -> None:
        if self.payout_id is not None and str(self.payout_id) != str(payout_id):
            raise Conflict(
                "Order item is already included in another payout",
                order_item_id=str(self.id),
                payout_id=str(self.payout_id),
            )
        self.payout_id = payout_id
        self.updated_at = datetime.now(UTC)
        self.raise_(OrderItemClaimedByPayout(order_item_id=str(self.id), payout_id=str(payout_id)))


def load_order_item(order_item_id) -> OrderItem:
    try:
        return current_domain.repository_for(OrderItem).get(order_item_id)
    except ObjectNotFoundError:
        raise OrderItemNotFound("Order item not found", order_item_id=str(order_item_id)) from None


def items_for_order(order_id) -> list[OrderItem]:
    items = current_domain.repository_for(OrderItem)._dao.query.filter(order_id=str(order_id)).limit(None).all().items
    return sorted(items, key=lambda item: item.position or 0)
