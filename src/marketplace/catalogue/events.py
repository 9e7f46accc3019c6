"""Domain events for the catalogue aggregates the settlement core reads."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Supplier")
class SupplierRegistered:
    __version__ = 1

    supplier_id = Identifier(required=True)
    business_name = String(required=True)
    commission_rate = Float(required=True)
    registered_at = DateTime(required=True)


@marketplace.event(part_of="Supplier")
class SupplierStatusChanged:
    __version__ = 1

    supplier_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)


@marketplace.event(part_of="Supplier")
class CommissionRateChanged:
    """Applies to future orders only; existing order items keep their rate."""

    __version__ = 1

    supplier_id = Identifier(required=True)
    previous_rate = Float(required=True)
    new_rate = Float(required=True)


@marketplace.event(part_of="Product")
class StockChanged:
    __version__ = 1

    product_id = Identifier(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    reason = String(required=True)
    reference_id = String()
