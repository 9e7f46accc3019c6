"""Domain events for Order, OrderItem and Delivery."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    subtotal = Float(required=True)
    delivery_fee = Float(required=True)
    total = Float(required=True)
    item_count = Integer(required=True)
    supplier_count = Integer(required=True)
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderPaymentStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)


@marketplace.event(part_of="Order")
class OrderDeliveryStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)


@marketplace.event(part_of="OrderItem")
class FulfillmentStatusChanged:
    __version__ = 1

    order_item_id = Identifier(required=True)
    order_id = Identifier(required=True)
    supplier_id = Identifier()
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@marketplace.event(part_of="OrderItem")
class OrderItemClaimedByPayout:
    __version__ = 1

    order_item_id = Identifier(required=True)
    payout_id = Identifier(required=True)
