"""Pydantic request schemas for the marketplace API.

These are external contracts, kept separate from the Protean commands they
are translated into.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class CreateCartRequest(BaseModel):
    customer_id: str | None = None
    session_id: str | None = None


class AddCartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, gt=0)


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(gt=0)


# ---------------------------------------------------------------------------
# Checkout & orders
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    cart_id: str
    customer_id: str | None = None
    customer_name: str = Field(min_length=1, max_length=255)
    customer_phone: str = Field(min_length=6, max_length=30)
    customer_email: str | None = None
    customer_address: str = Field(min_length=1, max_length=500)
    customer_city: str | None = None
    customer_region: str | None = None
    delivery_notes: str | None = None
    notes: str | None = None
    payment_method: str = "MOMO"
    momo_phone: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "cart_id": "V1StGXR8_Z5jdHi6B-myT",
                    "customer_name": "Awa Ndiaye",
                    "customer_phone": "+237670000000",
                    "customer_address": "Rue 1.234, Bastos",
                    "customer_city": "Yaounde",
                    "payment_method": "MOMO",
                }
            ]
        }
    }


class UpdateDeliveryStatusRequest(BaseModel):
    status: str
    notes: str | None = None


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class InitiatePaymentRequest(BaseModel):
    order_id: str
    phone_number: str = Field(min_length=6, max_length=30)
    provider: str = "MTN_MOMO"


# ---------------------------------------------------------------------------
# Fulfillment
# ---------------------------------------------------------------------------
class UpdateFulfillmentRequest(BaseModel):
    status: str
    tracking_number: str | None = None
    notes: str | None = None


# ---------------------------------------------------------------------------
# Payouts
# ---------------------------------------------------------------------------
class GeneratePayoutsRequest(BaseModel):
    period_start: datetime
    period_end: datetime


class UpdatePayoutStatusRequest(BaseModel):
    status: str
    payment_reference: str | None = None
    notes: str | None = None
