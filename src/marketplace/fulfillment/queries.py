"""Supplier-facing reads over order items."""

from protean.utils.globals import current_domain

from marketplace.order.order_item import FulfillmentStatus, OrderItem


def supplier_items(supplier_id, status: str | None = None) -> list[OrderItem]:
    """The supplier's order items, newest first, optionally filtered by status."""
    filters = {"supplier_id": str(supplier_id)}
    if status:
        filters["fulfillment_status"] = FulfillmentStatus(status).value
    items = current_domain.repository_for(OrderItem)._dao.query.filter(**filters).limit(None).all().items
    return sorted(items, key=lambda item: item.created_at, reverse=True)


def supplier_fulfillment_stats(supplier_id) -> dict:
    """Count of the supplier's items in each fulfillment status."""
    counts = {status.value: 0 for status in FulfillmentStatus}
    for item in supplier_items(supplier_id):
        counts[item.fulfillment_status] += 1
    counts["total"] = sum(counts.values())
    return counts
