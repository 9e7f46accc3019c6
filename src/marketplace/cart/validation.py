"""Pre-checkout validation.

Catches lines whose product was deactivated or ran low since it was added.
Passing here is not a stock reservation: checkout re-checks stock inside
its own transaction.
"""

from collections.abc import Mapping

from marketplace.errors import CartInvalid


def find_cart_issues(cart, products: Mapping) -> list[str]:
    lines = cart.lines()
    if not lines:
        return ["Cart is empty"]

    issues = []
    for item in lines:
        product = products.get(str(item.product_id))
        if product is None or not product.active:
            issues.append(f"{item.name_snapshot} is no longer available")
        elif product.stock < item.quantity:
            issues.append(f"{product.name}: only {product.stock} available (requested {item.quantity})")
    return issues


def validate_for_checkout(cart, products: Mapping) -> None:
    issues = find_cart_issues(cart, products)
    if issues:
        raise CartInvalid(issues)
