"""InventoryLog aggregate: append-only audit of every stock movement."""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, Integer, String

from marketplace.domain import marketplace


class InventoryReason(Enum):
    SALE = "SALE"
    RESTOCK = "RESTOCK"
    ADJUSTMENT = "ADJUSTMENT"
    RETURN = "RETURN"


class ReferenceType(Enum):
    ORDER = "ORDER"
    MANUAL = "MANUAL"


@marketplace.aggregate
class InventoryLog:
    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    change = Integer(required=True)
    reason = String(choices=InventoryReason, required=True)
    reference_id = String(max_length=100)
    reference_type = String(choices=ReferenceType)
    notes = String(max_length=500)
    created_at = DateTime()

    @classmethod
    def record(cls, product, previous_stock, reason, reference_id=None, reference_type=None, notes=None):
        """Capture a movement from ``previous_stock`` to the product's current level."""
        return cls(
            product_id=str(product.id),
            product_name=product.name,
            previous_stock=previous_stock,
            new_stock=product.stock,
            change=product.stock - previous_stock,
            reason=reason.value,
            reference_id=reference_id,
            reference_type=reference_type.value if reference_type else None,
            notes=notes,
            created_at=datetime.now(UTC),
        )
