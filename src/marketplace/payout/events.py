"""Domain events for the SupplierPayout aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="SupplierPayout")
class PayoutGenerated:
    __version__ = 1

    payout_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    period_start = DateTime(required=True)
    period_end = DateTime(required=True)
    gross_amount = Float(required=True)
    commission_amount = Float(required=True)
    net_amount = Float(required=True)
    item_count = Integer(required=True)


@marketplace.event(part_of="SupplierPayout")
class PayoutStatusChanged:
    __version__ = 1

    payout_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    payment_reference = String()
