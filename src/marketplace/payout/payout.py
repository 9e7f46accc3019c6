"""SupplierPayout aggregate (CQRS): one settlement per supplier per period.

``period_key`` is unique, so a second payout for the same supplier and
period is rejected by storage even when two generations race. Included
order items are listed in ``order_item_ids`` and each item also records the
payout that claimed it.

Status:
    PENDING, PROCESSING, COMPLETED and FAILED are set freely by the operator.
    Each move into COMPLETED stamps paid_at.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import PayoutNotFound
from marketplace.payout.events import PayoutGenerated, PayoutStatusChanged


class PayoutStatus(Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so stored and requested bounds compare."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def period_key_for(supplier_id, period_start: datetime, period_end: datetime) -> str:
    return f"{supplier_id}:{as_utc(period_start).isoformat()}:{as_utc(period_end).isoformat()}"


@marketplace.aggregate
class SupplierPayout:
    supplier_id = Identifier(required=True)
    period_start = DateTime(required=True)
    period_end = DateTime(required=True)
    period_key = String(required=True, unique=True, max_length=200)

    gross_amount = Float(required=True, min_value=0.0)
    commission_amount = Float(required=True, min_value=0.0)
    net_amount = Float(required=True)
    currency = String(max_length=3, default="XAF")

    order_item_ids = Text(required=True)  # JSON list
    item_count = Integer(required=True, min_value=1)

    status = String(choices=PayoutStatus, default=PayoutStatus.PENDING.value)
    payment_reference = String(max_length=100)
    notes = Text()
    paid_at = DateTime()

    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def generate(cls, supplier_id, period_start, period_end, items, currency):
        gross = round(sum(item.total_price for item in items), 2)
        commission = round(sum(item.commission_amount for item in items), 2)
        now = datetime.now(UTC)

        payout = cls(
            supplier_id=supplier_id,
            period_start=as_utc(period_start),
            period_end=as_utc(period_end),
            period_key=period_key_for(supplier_id, period_start, period_end),
            gross_amount=gross,
            commission_amount=commission,
            net_amount=round(gross - commission, 2),
            currency=currency,
            order_item_ids=json.dumps([str(item.id) for item in items]),
            item_count=len(items),
            status=PayoutStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )

        payout.raise_(
            PayoutGenerated(
                payout_id=str(payout.id),
                supplier_id=str(supplier_id),
                period_start=payout.period_start,
                period_end=payout.period_end,
                gross_amount=payout.gross_amount,
                commission_amount=payout.commission_amount,
                net_amount=payout.net_amount,
                item_count=payout.item_count,
            )
        )
        return payout

    @property
    def item_ids(self) -> list[str]:
        return json.loads(self.order_item_ids) if self.order_item_ids else []

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    def change_status(self, target: PayoutStatus, payment_reference=None, notes=None) -> None:
        current = PayoutStatus(self.status)
        now = datetime.now(UTC)
        self.status = target.value
        if payment_reference:
            self.payment_reference = payment_reference
        if notes:
            self.notes = notes
        if target == PayoutStatus.COMPLETED and current != PayoutStatus.COMPLETED:
            self.paid_at = now
        self.updated_at = now

        if target != current:
            self.raise_(
                PayoutStatusChanged(
                    payout_id=str(self.id),
                    supplier_id=str(self.supplier_id),
                    previous_status=current.value,
                    new_status=target.value,
                    payment_reference=self.payment_reference,
                )
            )


def load_payout(payout_id) -> SupplierPayout:
    try:
        return current_domain.repository_for(SupplierPayout).get(payout_id)
    except ObjectNotFoundError:
        raise PayoutNotFound(f"Payout {payout_id} not found", payout_id=str(payout_id)) from None
