"""Payout generation for a closed period.

For every active supplier, delivered items whose delivery falls inside
[period_start, period_end] and that no payout has claimed yet are summed
into a single SupplierPayout. The whole run is one Unit of Work.
"""

import structlog
from protean import handle
from protean.exceptions import TransactionError, ValidationError
from protean.fields import DateTime
from protean.utils.globals import current_domain

from marketplace.catalogue.supplier import Supplier, SupplierStatus
from marketplace.config import load_settings
from marketplace.domain import marketplace
from marketplace.errors import DuplicatePayout, InternalError, InvalidInput
from marketplace.order.order_item import FulfillmentStatus, OrderItem
from marketplace.payout.payout import SupplierPayout, as_utc, period_key_for

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="SupplierPayout")
class GeneratePayouts:
    period_start = DateTime(required=True)
    period_end = DateTime(required=True)


def delivered_items(supplier_id) -> list[OrderItem]:
    return (
        current_domain.repository_for(OrderItem)
        ._dao.query.filter(supplier_id=str(supplier_id), fulfillment_status=FulfillmentStatus.DELIVERED.value)
        .limit(None)
        .all()
        .items
    )


def payout_exists(period_key: str) -> bool:
    repo = current_domain.repository_for(SupplierPayout)
    return bool(repo._dao.query.filter(period_key=period_key).limit(None).all().items)


def eligible_items(supplier_id, period_start, period_end, delivered: list[OrderItem]) -> list[OrderItem]:
    """Delivered inside the closed window and not yet claimed by any payout."""
    start, end = as_utc(period_start), as_utc(period_end)
    return [
        item
        for item in delivered
        if item.belongs_to(supplier_id)
        and item.payout_id is None
        and item.delivered_at is not None
        and start <= as_utc(item.delivered_at) <= end
    ]


@marketplace.command_handler(part_of=SupplierPayout)
class GeneratePayoutsHandler:
    @handle(GeneratePayouts)
    def generate_payouts(self, command):
        if as_utc(command.period_start) > as_utc(command.period_end):
            raise InvalidInput("Period start must not be after period end")

        payout_repo = current_domain.repository_for(SupplierPayout)
        item_repo = current_domain.repository_for(OrderItem)
        currency = load_settings().currency

        suppliers = (
            current_domain.repository_for(Supplier)
            ._dao.query.filter(status=SupplierStatus.ACTIVE.value)
            .limit(None)
            .all()
            .items
        )

        created = []
        for supplier in suppliers:
            items = eligible_items(supplier.id, command.period_start, command.period_end, delivered_items(supplier.id))
            if not items:
                continue

            key = period_key_for(supplier.id, command.period_start, command.period_end)
            if payout_exists(key):
                logger.info("Payout already exists for period", supplier_id=str(supplier.id), period_key=key)
                continue

            payout = SupplierPayout.generate(
                supplier_id=supplier.id,
                period_start=command.period_start,
                period_end=command.period_end,
                items=items,
                currency=currency,
            )
            try:
                payout_repo.add(payout)
            except ValidationError as exc:
                # A concurrent run inserted the same period after the existence check
                if "period_key" in (exc.messages or {}):
                    raise DuplicatePayout(
                        "A payout for this supplier and period already exists",
                        supplier_id=str(supplier.id),
                        period_key=key,
                    ) from None
                raise
            for item in items:
                item.claim_for_payout(payout.id)
                item_repo.add(item)
            created.append(str(payout.id))

        logger.info(
            "Payouts generated",
            period_start=str(command.period_start),
            period_end=str(command.period_end),
            count=len(created),
        )
        return created


def generate_payouts(period_start, period_end) -> list[str]:
    """Run ``GeneratePayouts`` and report a failed commit as a domain error.

    On SQL storage a racing run that slips past both checks is stopped by the
    unique ``period_key`` index at commit time.
    """
    try:
        return current_domain.process(
            GeneratePayouts(period_start=period_start, period_end=period_end), asynchronous=False
        )
    except TransactionError as exc:
        extra = exc.extra_info or {}
        logger.error("Payout generation commit failed", error=str(exc), **extra)
        if extra.get("original_exception") == "IntegrityError":
            raise DuplicatePayout("A payout for this period was generated concurrently") from exc
        raise InternalError("Payout generation could not be saved") from exc
