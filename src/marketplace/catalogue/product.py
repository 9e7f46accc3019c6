"""Product aggregate: the sellable unit the cart and checkout read.

Catalogue authoring (categories, images, slugs) is handled elsewhere; this
aggregate keeps the price, availability and stock level that the settlement
core snapshots and decrements.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.catalogue.events import StockChanged
from marketplace.domain import marketplace
from marketplace.errors import InsufficientStock, InvalidInput, ProductUnavailable


@marketplace.aggregate
class Product:
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="XAF")
    stock = Integer(default=0, min_value=0)
    active = Boolean(default=True)
    supplier_id = Identifier()  # None means platform-owned inventory
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, name, price, stock=0, supplier_id=None, currency="XAF", active=True):
        now = datetime.now(UTC)
        return cls(
            name=name,
            price=price,
            currency=currency,
            stock=stock,
            active=active,
            supplier_id=supplier_id,
            created_at=now,
            updated_at=now,
        )

    def has_stock_for(self, quantity: int) -> bool:
        return self.stock >= quantity

    def decrement_stock(self, quantity: int, reason: str, reference_id: str | None = None) -> int:
        """Take ``quantity`` units out of stock and return the previous level."""
        if quantity <= 0:
            raise InvalidInput("Quantity must be positive", quantity=quantity)
        if self.stock < quantity:
            raise InsufficientStock(
                f"{self.name}: only {self.stock} available (requested {quantity})",
                product_id=str(self.id),
                available=self.stock,
                requested=quantity,
            )
        return self._set_stock(self.stock - quantity, reason, reference_id)

    def restock(self, quantity: int, reason: str, reference_id: str | None = None) -> int:
        if quantity <= 0:
            raise InvalidInput("Quantity must be positive", quantity=quantity)
        return self._set_stock(self.stock + quantity, reason, reference_id)

    def set_availability(self, active: bool) -> None:
        self.active = active
        self.updated_at = datetime.now(UTC)

    def _set_stock(self, new_stock: int, reason: str, reference_id: str | None) -> int:
        previous = self.stock
        self.stock = new_stock
        self.updated_at = datetime.now(UTC)
        self.raise_(
            StockChanged(
                product_id=str(self.id),
                previous_stock=previous,
                new_stock=new_stock,
                reason=reason,
                reference_id=reference_id,
            )
        )
        return previous


def load_product(product_id) -> Product:
    """Fetch a product, treating a missing one as unavailable to buyers."""
    try:
        return current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError:
        raise ProductUnavailable("Product is not available", product_id=str(product_id)) from None
