"""FastAPI routes for the marketplace."""

from datetime import datetime

import structlog
from fastapi import APIRouter, Query, Request
from protean.utils.globals import current_domain

from marketplace.api.schemas import (
    AddCartItemRequest,
    CheckoutRequest,
    CreateCartRequest,
    GeneratePayoutsRequest,
    InitiatePaymentRequest,
    UpdateCartItemRequest,
    UpdateDeliveryStatusRequest,
    UpdateFulfillmentRequest,
    UpdatePayoutStatusRequest,
)
from marketplace.cart.cart import Cart, find_cart_by_public_id
from marketplace.cart.items import AddCartItem, ClearCart, RemoveCartItem, UpdateCartItem
from marketplace.cart.management import get_or_create_cart
from marketplace.cart.queries import cart_summary
from marketplace.errors import CartNotFound
from marketplace.fulfillment.queries import supplier_fulfillment_stats, supplier_items
from marketplace.fulfillment.tracking import UpdateFulfillmentStatus
from marketplace.order.checkout import PlaceOrder, checkout as place_order
from marketplace.order.delivery_tracking import UpdateDeliveryStatus
from marketplace.order.order_item import load_order_item
from marketplace.order.views import get_order_by_number, get_order_view, order_item_view, order_view, track_orders
from marketplace.payment.initiation import initiate_payment
from marketplace.payment.verification import verify_payment
from marketplace.payment.webhook import receive_webhook
from marketplace.payout.generation import generate_payouts
from marketplace.payout.management import UpdatePayoutStatus
from marketplace.payout.payout import load_payout
from marketplace.payout.queries import get_payout_stats, get_supplier_earnings, list_payouts, payout_view

logger = structlog.get_logger(__name__)


def _cart(public_id: str) -> Cart:
    cart = find_cart_by_public_id(public_id)
    if cart is None:
        raise CartNotFound("Cart not found", cart_id=public_id)
    return cart


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("", status_code=201)
async def create_cart(body: CreateCartRequest) -> dict:
    cart = get_or_create_cart(customer_id=body.customer_id, session_id=body.session_id)
    return cart_summary(cart)


@cart_router.get("/{public_id}")
async def get_cart(public_id: str) -> dict:
    return cart_summary(_cart(public_id))


@cart_router.post("/{public_id}/items", status_code=201)
async def add_cart_item(public_id: str, body: AddCartItemRequest) -> dict:
    cart = get_or_create_cart(public_id=public_id)
    current_domain.process(
        AddCartItem(cart_id=str(cart.id), product_id=body.product_id, quantity=body.quantity),
        asynchronous=False,
    )
    return cart_summary(_cart(public_id))


@cart_router.patch("/{public_id}/items/{item_id}")
async def update_cart_item(public_id: str, item_id: str, body: UpdateCartItemRequest) -> dict:
    cart = _cart(public_id)
    current_domain.process(
        UpdateCartItem(cart_id=str(cart.id), item_id=item_id, quantity=body.quantity),
        asynchronous=False,
    )
    return cart_summary(_cart(public_id))


@cart_router.delete("/{public_id}/items/{item_id}")
async def remove_cart_item(public_id: str, item_id: str) -> dict:
    cart = _cart(public_id)
    current_domain.process(RemoveCartItem(cart_id=str(cart.id), item_id=item_id), asynchronous=False)
    return cart_summary(_cart(public_id))


@cart_router.delete("/{public_id}/items")
async def clear_cart(public_id: str) -> dict:
    cart = _cart(public_id)
    current_domain.process(ClearCart(cart_id=str(cart.id)), asynchronous=False)
    return cart_summary(_cart(public_id))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("/checkout", status_code=201)
async def checkout(body: CheckoutRequest) -> dict:
    cart = _cart(body.cart_id)
    command = PlaceOrder(
        cart_id=str(cart.id),
        customer_id=body.customer_id,
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        customer_email=body.customer_email,
        customer_address=body.customer_address,
        customer_city=body.customer_city,
        customer_region=body.customer_region,
        delivery_notes=body.delivery_notes,
        notes=body.notes,
        payment_method=body.payment_method,
        momo_phone=body.momo_phone,
    )
    order_id = place_order(command)
    return get_order_view(order_id)


@order_router.get("/track")
async def track(
    order_number: str | None = None,
    phone: str | None = None,
    email: str | None = None,
) -> list[dict]:
    return track_orders(order_number=order_number, phone=phone, email=email)


@order_router.get("/number/{order_number}")
async def get_by_number(order_number: str) -> dict:
    return order_view(get_order_by_number(order_number))


@order_router.get("/{order_id}")
async def get_order(order_id: str) -> dict:
    return get_order_view(order_id)


@order_router.post("/{order_id}/delivery")
async def update_delivery(order_id: str, body: UpdateDeliveryStatusRequest) -> dict:
    current_domain.process(
        UpdateDeliveryStatus(order_id=order_id, status=body.status, notes=body.notes),
        asynchronous=False,
    )
    return get_order_view(order_id)


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/initiate")
async def start_payment(body: InitiatePaymentRequest) -> dict:
    return initiate_payment(body.order_id, body.phone_number, body.provider)


@payment_router.post("/webhook")
async def payment_webhook(request: Request) -> dict:
    """Provider callback. Always acknowledged so the provider does not retry."""
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Payment webhook with unreadable body dropped")
        return {"received": True, "status": None}
    if not isinstance(payload, dict):
        logger.warning("Payment webhook with unexpected body dropped")
        return {"received": True, "status": None}
    return receive_webhook(payload)


@payment_router.get("/verify/{transaction_id}")
async def verify(transaction_id: str) -> dict:
    return {"transaction_id": transaction_id, "status": verify_payment(transaction_id)}


# ---------------------------------------------------------------------------
# Supplier Fulfillment Router
# ---------------------------------------------------------------------------
supplier_router = APIRouter(prefix="/suppliers/{supplier_id}", tags=["fulfillment"])


@supplier_router.get("/items")
async def list_supplier_items(supplier_id: str, status: str | None = None) -> list[dict]:
    return [order_item_view(item) for item in supplier_items(supplier_id, status)]


@supplier_router.patch("/items/{item_id}")
async def update_fulfillment(supplier_id: str, item_id: str, body: UpdateFulfillmentRequest) -> dict:
    current_domain.process(
        UpdateFulfillmentStatus(
            supplier_id=supplier_id,
            order_item_id=item_id,
            status=body.status,
            tracking_number=body.tracking_number,
            notes=body.notes,
        ),
        asynchronous=False,
    )
    return order_item_view(load_order_item(item_id))


@supplier_router.get("/stats")
async def fulfillment_stats(supplier_id: str) -> dict:
    return supplier_fulfillment_stats(supplier_id)


@supplier_router.get("/earnings")
async def earnings(supplier_id: str) -> dict:
    return get_supplier_earnings(supplier_id)


# ---------------------------------------------------------------------------
# Payout Router
# ---------------------------------------------------------------------------
payout_router = APIRouter(prefix="/payouts", tags=["payouts"])


@payout_router.post("/generate", status_code=201)
async def generate(body: GeneratePayoutsRequest) -> list[dict]:
    payout_ids = generate_payouts(body.period_start, body.period_end)
    return [payout_view(load_payout(payout_id)) for payout_id in payout_ids]


@payout_router.get("")
async def payouts(
    supplier_id: str | None = None,
    status: str | None = None,
    start: str | None = None,
    end: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> dict:
    return list_payouts(
        supplier_id=supplier_id,
        status=status,
        start=datetime.fromisoformat(start) if start else None,
        end=datetime.fromisoformat(end) if end else None,
        page=page,
        limit=limit,
    )


@payout_router.get("/stats")
async def payout_stats() -> dict:
    return get_payout_stats()


@payout_router.patch("/{payout_id}/status")
async def update_payout(payout_id: str, body: UpdatePayoutStatusRequest) -> dict:
    current_domain.process(
        UpdatePayoutStatus(
            payout_id=payout_id,
            status=body.status,
            payment_reference=body.payment_reference,
            notes=body.notes,
        ),
        asynchronous=False,
    )
    return payout_view(load_payout(payout_id))


routers = [cart_router, order_router, payment_router, supplier_router, payout_router]
