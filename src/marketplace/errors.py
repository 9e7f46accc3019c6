"""Domain error hierarchy.

Every error carries a stable ``kind`` (one of the classes directly under
``MarketplaceError``), a machine-readable ``code`` and a human message. The
HTTP layer maps kinds to status codes; callers branch on kind, not message.
"""


class MarketplaceError(Exception):
    kind = "internal"
    code = "internal_error"
    retryable = False

    def __init__(self, message: str, code: str | None = None, **details) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details

    def to_dict(self) -> dict:
        payload = {
            "kind": self.kind,
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class NotFound(MarketplaceError):
    kind = "not_found"
    code = "not_found"


class Conflict(MarketplaceError):
    kind = "conflict"
    code = "conflict"


class InvalidInput(MarketplaceError):
    kind = "invalid_input"
    code = "invalid_input"


class ExternalProviderError(MarketplaceError):
    kind = "external_provider"
    code = "provider_error"
    retryable = True


class InternalError(MarketplaceError):
    kind = "internal"
    code = "internal_error"


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
class ProductUnavailable(InvalidInput):
    code = "product_unavailable"


class OutOfStock(InvalidInput):
    code = "out_of_stock"


class SupplierNotFound(NotFound):
    code = "supplier_not_found"


class InvalidCommissionRate(Conflict):
    code = "invalid_commission_rate"


# ---------------------------------------------------------------------------
# Cart & checkout
# ---------------------------------------------------------------------------
class CartNotFound(NotFound):
    code = "cart_not_found"


class CartItemNotFound(NotFound):
    code = "cart_item_not_found"


class CartInvalid(InvalidInput):
    code = "cart_invalid"

    def __init__(self, reasons: list[str]) -> None:
        super().__init__("Cart validation failed", reasons=list(reasons))
        self.reasons = list(reasons)


class InsufficientStock(InvalidInput):
    code = "insufficient_stock"


# ---------------------------------------------------------------------------
# Orders & payments
# ---------------------------------------------------------------------------
class OrderNotFound(NotFound):
    code = "order_not_found"


class OrderItemNotFound(NotFound):
    code = "order_item_not_found"


class PaymentRecordMissing(NotFound):
    code = "payment_record_missing"


class PaymentNotFound(NotFound):
    code = "payment_not_found"


class AlreadyPaid(Conflict):
    code = "already_paid"


class PaymentClosed(Conflict):
    code = "payment_closed"


class InvalidStatusTransition(InvalidInput):
    code = "invalid_status_transition"


# ---------------------------------------------------------------------------
# Payouts
# ---------------------------------------------------------------------------
class PayoutNotFound(NotFound):
    code = "payout_not_found"


class DuplicatePayout(Conflict):
    code = "duplicate_payout"
