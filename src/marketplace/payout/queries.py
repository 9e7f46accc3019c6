"""Payout listings, statistics and supplier earnings. Read-only."""

from datetime import UTC, datetime

from protean.utils.globals import current_domain

from marketplace.errors import InvalidInput
from marketplace.order.order_item import FulfillmentStatus, OrderItem
from marketplace.payout.payout import PayoutStatus, SupplierPayout, as_utc

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def payout_view(payout: SupplierPayout) -> dict:
    return {
        "id": str(payout.id),
        "supplier_id": str(payout.supplier_id),
        "period_start": payout.period_start.isoformat(),
        "period_end": payout.period_end.isoformat(),
        "gross_amount": payout.gross_amount,
        "commission_amount": payout.commission_amount,
        "net_amount": payout.net_amount,
        "currency": payout.currency,
        "order_item_ids": payout.item_ids,
        "item_count": payout.item_count,
        "status": payout.status,
        "payment_reference": payout.payment_reference,
        "notes": payout.notes,
        "paid_at": payout.paid_at.isoformat() if payout.paid_at else None,
        "created_at": payout.created_at.isoformat() if payout.created_at else None,
    }


def list_payouts(
    supplier_id=None,
    status: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict:
    """Payouts newest first; ``start``/``end`` keep periods inside the window."""
    filters = {}
    if supplier_id:
        filters["supplier_id"] = str(supplier_id)
    if status:
        try:
            filters["status"] = PayoutStatus(status).value
        except ValueError:
            raise InvalidInput(f"Unknown payout status: {status}", status=status) from None

    repo = current_domain.repository_for(SupplierPayout)
    payouts = repo._dao.query.filter(**filters).limit(None).all().items if filters else repo._dao.query.limit(None).all().items
    if start:
        payouts = [p for p in payouts if as_utc(p.period_start) >= as_utc(start)]
    if end:
        payouts = [p for p in payouts if as_utc(p.period_end) <= as_utc(end)]
    payouts.sort(key=lambda p: p.created_at, reverse=True)

    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    offset = (page - 1) * limit
    total = len(payouts)
    return {
        "data": [payout_view(p) for p in payouts[offset : offset + limit]],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": (total + limit - 1) // limit,
        },
    }


def get_payout_stats() -> dict:
    """Count and net sum of payouts per status."""
    stats = {status.value: {"count": 0, "net_amount": 0.0} for status in PayoutStatus}
    for payout in current_domain.repository_for(SupplierPayout)._dao.query.limit(None).all().items:
        bucket = stats[payout.status]
        bucket["count"] += 1
        bucket["net_amount"] = round(bucket["net_amount"] + payout.net_amount, 2)
    return stats


def get_supplier_earnings(supplier_id, now: datetime | None = None) -> dict:
    """Delivered revenue (lifetime and this month) and payout totals for a supplier."""
    now = as_utc(now or datetime.now(UTC))
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    delivered = (
        current_domain.repository_for(OrderItem)
        ._dao.query.filter(supplier_id=str(supplier_id), fulfillment_status=FulfillmentStatus.DELIVERED.value)
        .limit(None)
        .all()
        .items
    )
    payouts = current_domain.repository_for(SupplierPayout)._dao.query.filter(supplier_id=str(supplier_id)).limit(None).all().items

    return {
        "lifetime_earnings": round(sum(item.total_price for item in delivered), 2),
        "monthly_earnings": round(
            sum(item.total_price for item in delivered if item.delivered_at and as_utc(item.delivered_at) >= month_start),
            2,
        ),
        "pending_payouts": round(sum(p.net_amount for p in payouts if p.status == PayoutStatus.PENDING.value), 2),
        "total_paid": round(sum(p.net_amount for p in payouts if p.status == PayoutStatus.COMPLETED.value), 2),
    }
