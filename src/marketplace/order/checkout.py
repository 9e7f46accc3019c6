"""Checkout: turns a validated cart into an order in one Unit of Work.

Within a single transaction the handler creates the Order, one OrderItem per
cart line with the supplier's commission rate frozen on it, the Payment and
Delivery records, decrements stock with an inventory log entry per line,
empties the cart and queues the confirmation messages. Any failure rolls
all of it back.
"""

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, TransactionError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart, load_cart
from marketplace.cart.pricing import compute_totals
from marketplace.cart.queries import products_for
from marketplace.cart.validation import validate_for_checkout
from marketplace.catalogue.inventory_log import InventoryLog, InventoryReason, ReferenceType
from marketplace.catalogue.product import Product
from marketplace.catalogue.supplier import load_supplier
from marketplace.config import load_settings
from marketplace.domain import marketplace
from marketplace.errors import InsufficientStock, InternalError, ProductUnavailable
from marketplace.notification.outbox import enqueue_order_placed
from marketplace.order.delivery import Delivery
from marketplace.order.order import Order
from marketplace.order.order_item import OrderItem
from marketplace.payment.payment import Payment, PaymentMethod

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class PlaceOrder:
    cart_id = Identifier(required=True)
    customer_id = Identifier()
    customer_name = String(required=True, max_length=255)
    customer_phone = String(required=True, max_length=30)
    customer_email = String(max_length=255)
    customer_address = String(required=True, max_length=500)
    customer_city = String(max_length=100)
    customer_region = String(max_length=100)
    delivery_notes = Text()
    notes = Text()
    payment_method = String(required=True, choices=PaymentMethod)
    momo_phone = String(max_length=30)  # payer number when it differs from the contact phone
    delete_cart = Boolean(default=False)


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        settings = load_settings()
        cart = load_cart(command.cart_id)
        products = products_for(cart)
        validate_for_checkout(cart, products)

        # 1. Totals
        totals = compute_totals(cart.lines(), products)
        delivery_fee = settings.delivery_fee_for(totals.subtotal)
        supplier_ids = sorted({line.supplier_id for line in totals.lines if line.supplier_id})
        suppliers = {supplier_id: load_supplier(supplier_id) for supplier_id in supplier_ids}

        # 2. Order
        order = Order.place(
            customer={
                "customer_id": command.customer_id,
                "name": command.customer_name,
                "phone": command.customer_phone,
                "email": command.customer_email,
                "address": command.customer_address,
                "city": command.customer_city,
                "region": command.customer_region,
                "delivery_notes": command.delivery_notes,
            },
            payment_method=command.payment_method,
            lines=totals.lines,
            subtotal=totals.subtotal,
            delivery_fee=delivery_fee,
            supplier_count=len(suppliers),
            currency=settings.currency,
            notes=command.notes,
        )
        current_domain.repository_for(Order).add(order)

        # 3. One item per cart line, commission frozen at today's rate
        item_repo = current_domain.repository_for(OrderItem)
        for position, line in enumerate(totals.lines):
            supplier = suppliers.get(line.supplier_id)
            rate = supplier.commission_rate if supplier is not None else 0.0
            item_repo.add(OrderItem.create(order.id, line, rate, settings.currency, position=position))

        # 4. Payment and delivery records
        current_domain.repository_for(Payment).add(
            Payment.open(
                order_id=order.id,
                method=command.payment_method,
                amount=order.total,
                currency=order.currency,
                phone_number=command.momo_phone or command.customer_phone,
            )
        )
        current_domain.repository_for(Delivery).add(Delivery.open(order.id))

        # 5. Stock, re-read and re-checked inside this transaction
        product_repo = current_domain.repository_for(Product)
        log_repo = current_domain.repository_for(InventoryLog)
        for line in totals.lines:
            try:
                product = product_repo.get(line.product_id)
            except ObjectNotFoundError:
                raise ProductUnavailable(f"{line.name} is no longer available", product_id=line.product_id) from None
            previous = product.decrement_stock(line.quantity, InventoryReason.SALE.value, reference_id=str(order.id))
            product_repo.add(product)
            log_repo.add(
                InventoryLog.record(
                    product,
                    previous,
                    InventoryReason.SALE,
                    reference_id=str(order.id),
                    reference_type=ReferenceType.ORDER,
                )
            )

        # 6. Empty the cart
        cart_repo = current_domain.repository_for(Cart)
        cart.clear()
        cart_repo.add(cart)
        if command.delete_cart:
            cart_repo._dao.delete(cart)

        # 7. Outbox: confirmation messages and invoice request
        enqueue_order_placed(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total=order.total,
            supplier_count=order.supplier_count,
        )
        return str(order.id)


def checkout(command: PlaceOrder) -> str:
    """Place the order and report a lost race for the same stock as a domain error.

    A competing checkout that commits a decrement of the same product first
    makes this commit stale. Protean retries the handler, whose validation
    then sees the new stock; ``ExpectedVersionError`` only escapes once the
    retries are used up.
    """
    try:
        return current_domain.process(command, asynchronous=False)
    except ExpectedVersionError:
        logger.warning("Checkout lost a concurrent stock update", cart_id=str(command.cart_id))
        raise InsufficientStock(
            "Stock changed while the order was being placed, please review your cart",
            cart_id=str(command.cart_id),
        ) from None
    except TransactionError as exc:
        logger.error("Checkout commit failed", cart_id=str(command.cart_id), error=str(exc), **(exc.extra_info or {}))
        raise InternalError("The order could not be saved") from exc
