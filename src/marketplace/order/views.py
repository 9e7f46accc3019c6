"""Read models for orders: the full order view and customer tracking lookups."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.catalogue.supplier import Supplier
from marketplace.errors import OrderNotFound, PaymentRecordMissing
from marketplace.order.delivery import Delivery
from marketplace.order.order import Order, load_order
from marketplace.order.order_item import items_for_order
from marketplace.payment.payment import find_payment_for_order


def _iso(value):
    return value.isoformat() if value else None


def _supplier_summary(supplier_id, cache: dict) -> dict | None:
    if not supplier_id:
        return None
    key = str(supplier_id)
    if key not in cache:
        try:
            supplier = current_domain.repository_for(Supplier).get(key)
            cache[key] = {"id": key, "business_name": supplier.business_name}
        except ObjectNotFoundError:
            cache[key] = {"id": key, "business_name": None}
    return cache[key]


def order_item_view(item, supplier: dict | None = None) -> dict:
    return {
        "id": str(item.id),
        "product_id": str(item.product_id),
        "product_name": item.product_name,
        "supplier_id": str(item.supplier_id) if item.supplier_id else None,
        "supplier": supplier,
        "unit_price": item.unit_price,
        "quantity": item.quantity,
        "total_price": item.total_price,
        "commission_rate": item.commission_rate,
        "commission_amount": item.commission_amount,
        "fulfillment_status": item.fulfillment_status,
        "tracking_number": item.tracking_number,
        "confirmed_at": _iso(item.confirmed_at),
        "shipped_at": _iso(item.shipped_at),
        "delivered_at": _iso(item.delivered_at),
    }


def order_summary(order: Order) -> dict:
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "delivery_status": order.delivery_status,
        "subtotal": order.subtotal,
        "delivery_fee": order.delivery_fee,
        "discount": order.discount,
        "total": order.total,
        "currency": order.currency,
        "supplier_count": order.supplier_count,
        "created_at": _iso(order.created_at),
    }


def order_view(order: Order) -> dict:
    """Order with its payment, delivery and supplier-attributed items."""
    try:
        payment = find_payment_for_order(order.id)
    except PaymentRecordMissing:
        payment = None
    deliveries = current_domain.repository_for(Delivery)._dao.query.filter(order_id=str(order.id)).limit(None).all().items
    delivery = deliveries[0] if deliveries else None

    suppliers: dict = {}
    view = order_summary(order)
    view.update(
        {
            "customer_phone": order.customer_phone,
            "customer_email": order.customer_email,
            "customer_address": order.customer_address,
            "customer_city": order.customer_city,
            "customer_region": order.customer_region,
            "delivery_notes": order.delivery_notes,
            "notes": order.notes,
            "items_snapshot": order.receipt_lines(),
            "items": [
                order_item_view(item, _supplier_summary(item.supplier_id, suppliers))
                for item in items_for_order(order.id)
            ],
            "payment": None
            if payment is None
            else {
                "id": str(payment.id),
                "method": payment.method,
                "provider": payment.provider,
                "amount": payment.amount,
                "status": payment.status,
                "transaction_id": payment.transaction_id,
                "provider_reference": payment.provider_reference,
                "paid_at": _iso(payment.paid_at),
                "failed_at": _iso(payment.failed_at),
                "failure_reason": payment.failure_reason,
            },
            "delivery": None
            if delivery is None
            else {
                "id": str(delivery.id),
                "status": delivery.status,
                "tracking_number": delivery.tracking_number,
                "picked_up_at": _iso(delivery.picked_up_at),
                "delivered_at": _iso(delivery.delivered_at),
            },
        }
    )
    return view


def get_order_view(order_id) -> dict:
    return order_view(load_order(order_id))


def get_order_by_number(order_number: str) -> Order:
    orders = current_domain.repository_for(Order)._dao.query.filter(order_number=order_number).limit(None).all().items
    if not orders:
        raise OrderNotFound(f"Order {order_number} not found", order_number=order_number)
    return orders[0]


def track_orders(order_number: str | None = None, phone: str | None = None, email: str | None = None) -> list[dict]:
    """Orders matching any of the given identifiers, newest first."""
    repo = current_domain.repository_for(Order)
    if order_number:
        orders = repo._dao.query.filter(order_number=order_number).limit(None).all().items
    elif phone:
        orders = repo._dao.query.filter(customer_phone=phone).limit(None).all().items
    elif email:
        orders = [o for o in repo._dao.query.limit(None).all().items if (o.customer_email or "").lower() == email.lower()]
    else:
        return []
    return [order_summary(order) for order in sorted(orders, key=lambda o: o.created_at, reverse=True)]
