"""Read-side helpers that join a cart with live product data."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.cart.pricing import CartTotals, compute_totals
from marketplace.cart.validation import find_cart_issues
from marketplace.catalogue.product import Product
from marketplace.config import load_settings


def products_for(cart: Cart) -> dict[str, Product]:
    """Load the products referenced by a cart, skipping any that were removed."""
    repo = current_domain.repository_for(Product)
    products = {}
    for item in cart.items:
        key = str(item.product_id)
        if key in products:
            continue
        try:
            products[key] = repo.get(key)
        except ObjectNotFoundError:
            continue
    return products


def cart_totals(cart: Cart, products: dict | None = None) -> CartTotals:
    products = products if products is not None else products_for(cart)
    subtotal = compute_totals(cart.lines(), products).subtotal
    return compute_totals(cart.lines(), products, delivery_fee=load_settings().delivery_fee_for(subtotal))


def cart_summary(cart: Cart) -> dict:
    products = products_for(cart)
    totals = cart_totals(cart, products)
    return {
        "id": str(cart.id),
        "public_id": cart.public_id,
        "items": [
            {
                "id": line.item_id,
                "product_id": line.product_id,
                "name": line.name,
                "unit_price": line.unit_price,
                "quantity": line.quantity,
                "currency": line.currency,
                "supplier_id": line.supplier_id,
                "line_total": line.total,
            }
            for line in totals.lines
        ],
        "totals": totals.to_dict(),
        "issues": find_cart_issues(cart, products) if cart.items else [],
    }
