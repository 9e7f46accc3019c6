"""Cart totals and per-supplier grouping.

Pure functions over a materialized cart: callers pass the lines plus a
mapping of product id to product so no storage is touched here.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

PLATFORM_GROUP_ID = "platform"
PLATFORM_GROUP_NAME = "Platform"


@dataclass
class PricedLine:
    item_id: str
    product_id: str
    name: str
    unit_price: float
    quantity: int
    currency: str
    supplier_id: str | None

    @property
    def total(self) -> float:
        return self.unit_price * self.quantity


@dataclass
class SupplierGroup:
    group_id: str
    supplier_id: str | None
    subtotal: float = 0.0
    item_count: int = 0
    lines: list[PricedLine] = field(default_factory=list)


@dataclass
class CartTotals:
    subtotal: float
    delivery_fee: float
    total: float
    item_count: int
    supplier_count: int
    lines: list[PricedLine]
    groups: list[SupplierGroup]

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "delivery_fee": self.delivery_fee,
            "total": self.total,
            "item_count": self.item_count,
            "supplier_count": self.supplier_count,
            "supplier_groups": [
                {
                    "group_id": group.group_id,
                    "supplier_id": group.supplier_id,
                    "subtotal": group.subtotal,
                    "item_count": group.item_count,
                    "product_ids": [line.product_id for line in group.lines],
                }
                for group in self.groups
            ],
        }


def price_lines(items: Iterable, products: Mapping) -> list[PricedLine]:
    """Join cart items with their product's supplier.

    Items whose product is no longer known fall into the platform group.
    """
    lines = []
    for item in items:
        product = products.get(str(item.product_id))
        supplier_id = getattr(product, "supplier_id", None) if product is not None else None
        lines.append(
            PricedLine(
                item_id=str(item.id),
                product_id=str(item.product_id),
                name=item.name_snapshot,
                unit_price=item.price_snapshot,
                quantity=item.quantity,
                currency=item.currency,
                supplier_id=str(supplier_id) if supplier_id else None,
            )
        )
    return lines


def compute_totals(items: Iterable, products: Mapping, delivery_fee: float = 0.0) -> CartTotals:
    lines = price_lines(items, products)

    groups: dict[str, SupplierGroup] = {}
    for line in lines:
        group_id = line.supplier_id or PLATFORM_GROUP_ID
        group = groups.setdefault(group_id, SupplierGroup(group_id=group_id, supplier_id=line.supplier_id))
        group.subtotal += line.total
        group.item_count += line.quantity
        group.lines.append(line)

    subtotal = sum(group.subtotal for group in groups.values())
    return CartTotals(
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        total=subtotal + delivery_fee,
        item_count=sum(line.quantity for line in lines),
        supplier_count=len(groups),
        lines=lines,
        groups=list(groups.values()),
    )
