"""Supplier-scoped fulfillment updates for order items."""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import OrderItemNotFound
from marketplace.order.order_item import FulfillmentStatus, OrderItem, load_order_item

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="OrderItem")
class UpdateFulfillmentStatus:
    supplier_id = Identifier(required=True)
    order_item_id = Identifier(required=True)
    status = String(required=True, choices=FulfillmentStatus)
    tracking_number = String(max_length=100)
    notes = Text()


@marketplace.command_handler(part_of=OrderItem)
class UpdateFulfillmentStatusHandler:
    @handle(UpdateFulfillmentStatus)
    def update_fulfillment_status(self, command):
        item = load_order_item(command.order_item_id)
        # Items of other suppliers are reported as missing
        if not item.belongs_to(command.supplier_id):
            raise OrderItemNotFound("Order item not found", order_item_id=str(command.order_item_id))

        item.advance_to(
            FulfillmentStatus(command.status),
            tracking_number=command.tracking_number,
            notes=command.notes,
        )
        current_domain.repository_for(OrderItem).add(item)

        logger.info(
            "Fulfillment status updated",
            order_item_id=str(item.id),
            supplier_id=str(command.supplier_id),
            status=item.fulfillment_status,
        )
        return item.fulfillment_status
