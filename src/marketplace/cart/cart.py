"""Cart aggregate (CQRS): a short-lived basket of product lines.

Each line carries the product's price and name as they were when the line
was last touched. Repeated adds or quantity updates refresh the snapshot;
a line left alone keeps its original price until checkout.
"""

from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartItemUpdated
from marketplace.domain import marketplace
from marketplace.errors import CartItemNotFound, CartNotFound, InvalidInput, OutOfStock, ProductUnavailable
from marketplace.identifiers import generate_public_id


@marketplace.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    name_snapshot = String(required=True, max_length=255)
    price_snapshot = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="XAF")
    quantity = Integer(required=True, min_value=1)
    sequence = Integer(default=0)
    added_at = DateTime()
    updated_at = DateTime()

    @property
    def line_total(self) -> float:
        return self.price_snapshot * self.quantity


@marketplace.aggregate
class Cart:
    public_id = String(required=True, unique=True, max_length=32)
    customer_id = Identifier()  # None for anonymous carts
    session_id = String(max_length=255)
    items = HasMany(CartItem)
    next_sequence = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id=None, session_id=None, public_id=None):
        now = datetime.now(UTC)
        return cls(
            public_id=public_id or generate_public_id(),
            customer_id=customer_id,
            session_id=session_id,
            next_sequence=0,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def lines(self) -> list[CartItem]:
        """Items in the order they were first added."""
        return sorted(self.items, key=lambda item: item.sequence or 0)

    def find_item(self, item_id) -> CartItem:
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise CartItemNotFound("Item not found in cart", item_id=str(item_id))
        return item

    def _item_for_product(self, product_id) -> CartItem | None:
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product, quantity: int) -> CartItem:
        """Add ``quantity`` of ``product``, merging with an existing line."""
        _require_positive(quantity)
        _require_available(product)

        existing = self._item_for_product(product.id)
        requested = quantity + (existing.quantity if existing else 0)
        if product.stock < requested:
            raise OutOfStock(
                f"Insufficient stock. Available: {product.stock}",
                product_id=str(product.id),
                available=product.stock,
                requested=requested,
            )

        now = datetime.now(UTC)
        if existing:
            existing.quantity = requested
            _refresh_snapshot(existing, product, now)
            item = existing
        else:
            item = CartItem(
                product_id=str(product.id),
                name_snapshot=product.name,
                price_snapshot=product.price,
                currency=product.currency,
                quantity=quantity,
                sequence=self.next_sequence,
                added_at=now,
                updated_at=now,
            )
            self.next_sequence = (self.next_sequence or 0) + 1
            self.add_items(item)

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product.id),
                quantity=quantity,
                unit_price=product.price,
            )
        )
        return item

    def update_item(self, item_id, product, quantity: int) -> CartItem:
        """Set a line's quantity, re-checking stock and re-pricing the line."""
        _require_positive(quantity)
        item = self.find_item(item_id)
        _require_available(product)

        if product.stock < quantity:
            raise OutOfStock(
                f"Insufficient stock. Available: {product.stock}",
                product_id=str(product.id),
                available=product.stock,
                requested=quantity,
            )

        previous = item.quantity
        now = datetime.now(UTC)
        item.quantity = quantity
        _refresh_snapshot(item, product, now)
        self.updated_at = now

        self.raise_(
            CartItemUpdated(
                cart_id=str(self.id),
                item_id=str(item.id),
                previous_quantity=previous,
                new_quantity=quantity,
            )
        )
        return item

    def remove_item(self, item_id) -> None:
        item = self.find_item(item_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(item.product_id),
            )
        )

    def clear(self) -> None:
        items = list(self.items)
        for item in items:
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(cart_id=str(self.id), item_count=len(items)))


def _require_positive(quantity: int) -> None:
    if quantity is None or quantity < 1:
        raise InvalidInput("Quantity must be at least 1", quantity=quantity)


def _require_available(product) -> None:
    if not product.active:
        raise ProductUnavailable("Product is not available", product_id=str(product.id))


def _refresh_snapshot(item: CartItem, product, now: datetime) -> None:
    item.price_snapshot = product.price
    item.name_snapshot = product.name
    item.currency = product.currency
    item.updated_at = now


def load_cart(cart_id) -> Cart:
    try:
        return current_domain.repository_for(Cart).get(cart_id)
    except ObjectNotFoundError:
        raise CartNotFound(f"Cart {cart_id} not found", cart_id=str(cart_id)) from None


def find_cart_by_public_id(public_id: str) -> Cart | None:
    carts = current_domain.repository_for(Cart)._dao.query.filter(public_id=public_id).limit(None).all().items
    return carts[0] if carts else None
