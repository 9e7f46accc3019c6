"""Courier progress updates for an order's delivery."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.notification.outbox import enqueue_delivery_update
from marketplace.order.delivery import Delivery, find_delivery_for_order
from marketplace.order.order import DeliveryStatus, Order, load_order


@marketplace.command(part_of="Order")
class UpdateDeliveryStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=DeliveryStatus)
    notes = Text()


@marketplace.command_handler(part_of=Order)
class UpdateDeliveryStatusHandler:
    @handle(UpdateDeliveryStatus)
    def update_delivery_status(self, command):
        order = load_order(command.order_id)
        delivery = find_delivery_for_order(order.id)
        target = DeliveryStatus(command.status)

        delivery.advance_to(target, notes=command.notes)
        order.record_delivery_status(target)

        current_domain.repository_for(Delivery).add(delivery)
        current_domain.repository_for(Order).add(order)
        enqueue_delivery_update(order, delivery)
        return delivery.status
