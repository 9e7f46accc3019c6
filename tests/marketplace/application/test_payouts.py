"""Tests for payout generation, status updates and reporting."""

from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.exceptions import TransactionError

from marketplace.catalogue.management import ChangeSupplierStatus
from marketplace.errors import DuplicatePayout, InternalError, InvalidInput, PayoutNotFound
from marketplace.order.order_item import FulfillmentStatus, OrderItem, items_for_order, load_order_item
from marketplace.payout import generation
from marketplace.payout.generation import generate_payouts
from marketplace.payout.management import UpdatePayoutStatus
from marketplace.payout.payout import SupplierPayout, load_payout
from marketplace.payout.queries import get_payout_stats, get_supplier_earnings, list_payouts


def _window(days=1):
    now = datetime.now(UTC)
    return now - timedelta(days=days), now + timedelta(days=days)


def _generate(start, end):
    return generate_payouts(start, end)


def _set_status(payout_id, status, **extra):
    return current_domain.process(UpdatePayoutStatus(payout_id=payout_id, status=status, **extra), asynchronous=False)


@pytest.fixture()
def delivered(two_supplier_order, market):
    """Both items of the order delivered."""
    item_a, item_b = items_for_order(two_supplier_order["order_id"])
    market.deliver(two_supplier_order["supplier_a"], item_a.id)
    market.deliver(two_supplier_order["supplier_b"], item_b.id)
    return {**two_supplier_order, "item_a": str(item_a.id), "item_b": str(item_b.id)}


class TestGeneratePayouts:
    def test_one_payout_per_supplier(self, delivered):
        payout_ids = _generate(*_window())
        payouts = {str(load_payout(p).supplier_id): load_payout(p) for p in payout_ids}

        assert set(payouts) == {delivered["supplier_a"], delivered["supplier_b"]}
        payout_a = payouts[delivered["supplier_a"]]
        assert payout_a.gross_amount == 2000.0
        assert payout_a.commission_amount == 200.0
        assert payout_a.net_amount == 1800.0
        assert payout_a.item_ids == [delivered["item_a"]]

    def test_included_items_are_claimed(self, delivered):
        payout_ids = _generate(*_window())
        claimed = {str(load_order_item(delivered[key]).payout_id) for key in ("item_a", "item_b")}
        assert claimed == set(payout_ids)

    def test_same_period_twice_creates_nothing(self, delivered):
        start, end = _window()
        _generate(start, end)
        assert _generate(start, end) == []
        assert len(current_domain.repository_for(SupplierPayout)._dao.query.all().items) == 2

    def test_overlapping_period_does_not_pay_items_twice(self, delivered):
        _generate(*_window(days=1))
        assert _generate(*_window(days=5)) == []

    def test_undelivered_items_are_not_paid(self, two_supplier_order):
        assert _generate(*_window()) == []

    def test_delivery_outside_window_is_excluded(self, delivered):
        start = datetime.now(UTC) + timedelta(days=1)
        assert _generate(start, start + timedelta(days=30)) == []

    def test_inactive_supplier_is_skipped(self, delivered):
        current_domain.process(
            ChangeSupplierStatus(supplier_id=delivered["supplier_b"], status="SUSPENDED"),
            asynchronous=False,
        )
        payout_ids = _generate(*_window())
        assert [str(load_payout(p).supplier_id) for p in payout_ids] == [delivered["supplier_a"]]
        assert load_order_item(delivered["item_b"]).payout_id is None

    def test_start_after_end_is_rejected(self, delivered):
        start, end = _window()
        with pytest.raises(InvalidInput):
            _generate(end, start)


@pytest.fixture()
def large_backlog(market):
    """105 delivered items for one supplier, built directly in the store."""
    supplier_id = market.supplier("Bulk Weavers", commission_rate=10.0)
    repo = current_domain.repository_for(OrderItem)
    now = datetime.now(UTC)
    for position in range(105):
        repo.add(
            OrderItem(
                order_id=f"bulk-order-{position // 5}",
                product_id="bulk-product",
                product_name="Raffia Mat",
                supplier_id=supplier_id,
                unit_price=100.0,
                quantity=1,
                total_price=100.0,
                position=position % 5,
                commission_rate=10.0,
                commission_amount=10.0,
                fulfillment_status=FulfillmentStatus.DELIVERED.value,
                delivered_at=now,
                created_at=now,
                updated_at=now,
            )
        )
    return supplier_id


class TestLargeBacklog:
    def test_every_delivered_item_is_paid(self, large_backlog):
        payout_id = _generate(*_window())[0]

        payout = load_payout(payout_id)
        assert payout.item_count == 105
        assert payout.gross_amount == 10500.0
        assert payout.net_amount == 9450.0

        assert all(str(item.payout_id) == payout_id for item in generation.delivered_items(large_backlog))

    def test_earnings_cover_every_item(self, large_backlog):
        _generate(*_window())
        earnings = get_supplier_earnings(large_backlog)
        assert earnings["lifetime_earnings"] == 10500.0
        assert earnings["pending_payouts"] == 9450.0

    def test_order_lists_all_its_items(self, market):
        supplier_id = market.supplier()
        repo = current_domain.repository_for(OrderItem)
        for position in range(120):
            repo.add(
                OrderItem(
                    order_id="big-order",
                    product_id="bulk-product",
                    product_name="Raffia Mat",
                    supplier_id=supplier_id,
                    unit_price=100.0,
                    quantity=1,
                    total_price=100.0,
                    position=position,
                )
            )
        assert [item.position for item in items_for_order("big-order")] == list(range(120))


class TestConcurrentGeneration:
    def test_same_period_inserted_after_existence_check(self, delivered, monkeypatch):
        start, end = (bound.replace(microsecond=0) for bound in _window())
        item_a = load_order_item(delivered["item_a"])
        competitor = SupplierPayout.generate(
            supplier_id=delivered["supplier_a"], period_start=start, period_end=end, items=[item_a], currency="XAF"
        )
        current_domain.repository_for(SupplierPayout).add(competitor)
        monkeypatch.setattr(generation, "payout_exists", lambda period_key: False)

        with pytest.raises(DuplicatePayout) as exc_info:
            _generate(start, end)

        assert exc_info.value.details["supplier_id"] == delivered["supplier_a"]
        payouts = current_domain.repository_for(SupplierPayout)._dao.query.all().items
        assert [str(p.id) for p in payouts] == [str(competitor.id)]
        assert load_order_item(delivered["item_a"]).payout_id is None
        assert load_order_item(delivered["item_b"]).payout_id is None

    def test_unique_index_failure_at_commit_is_a_duplicate(self, monkeypatch):
        _fail_commit_with(monkeypatch, "IntegrityError")
        with pytest.raises(DuplicatePayout):
            _generate(*_window())

    def test_other_commit_failure_is_internal(self, monkeypatch):
        _fail_commit_with(monkeypatch, "OperationalError")
        with pytest.raises(InternalError):
            _generate(*_window())


def _fail_commit_with(monkeypatch, original_exception):
    class _Domain:
        def process(self, command, asynchronous=True):
            raise TransactionError(
                "Commit failed",
                extra_info={"original_exception": original_exception, "original_message": "simulated"},
            )

    monkeypatch.setattr(generation, "current_domain", _Domain())


class TestPayoutStatus:
    def test_complete_with_reference(self, delivered):
        payout_id = _generate(*_window())[0]
        assert _set_status(payout_id, "PROCESSING") == "PROCESSING"
        assert _set_status(payout_id, "COMPLETED", payment_reference="BANK-001") == "COMPLETED"

        payout = load_payout(payout_id)
        assert payout.payment_reference == "BANK-001"
        assert payout.paid_at is not None

    def test_completed_payout_can_move_to_failed(self, delivered):
        payout_id = _generate(*_window())[0]
        _set_status(payout_id, "COMPLETED")
        assert _set_status(payout_id, "FAILED", notes="Transfer bounced") == "FAILED"

        payout = load_payout(payout_id)
        assert payout.notes == "Transfer bounced"
        assert get_payout_stats()["FAILED"]["count"] == 1

    def test_unknown_payout(self):
        with pytest.raises(PayoutNotFound):
            _set_status("missing", "COMPLETED")


class TestPayoutReporting:
    def test_list_filters_by_supplier(self, delivered):
        _generate(*_window())
        result = list_payouts(supplier_id=delivered["supplier_a"])
        assert result["pagination"]["total"] == 1
        assert result["data"][0]["supplier_id"] == delivered["supplier_a"]

    def test_list_paginates(self, delivered):
        _generate(*_window())
        result = list_payouts(page=2, limit=1)
        assert len(result["data"]) == 1
        assert result["pagination"] == {"page": 2, "limit": 1, "total": 2, "total_pages": 2}

    def test_list_rejects_unknown_status(self):
        with pytest.raises(InvalidInput):
            list_payouts(status="LOST")

    def test_stats_group_by_status(self, delivered):
        payout_ids = _generate(*_window())
        _set_status(payout_ids[0], "COMPLETED")

        stats = get_payout_stats()
        assert stats["COMPLETED"]["count"] == 1
        assert stats["PENDING"]["count"] == 1
        assert stats["COMPLETED"]["net_amount"] + stats["PENDING"]["net_amount"] == 2250.0

    def test_supplier_earnings(self, delivered):
        payout_id = next(
            p for p in _generate(*_window()) if str(load_payout(p).supplier_id) == delivered["supplier_a"]
        )
        earnings = get_supplier_earnings(delivered["supplier_a"])
        assert earnings["lifetime_earnings"] == 2000.0
        assert earnings["monthly_earnings"] == 2000.0
        assert earnings["pending_payouts"] == 1800.0
        assert earnings["total_paid"] == 0.0

        _set_status(payout_id, "COMPLETED")
        earnings = get_supplier_earnings(delivered["supplier_a"])
        assert earnings["pending_payouts"] == 0.0
        assert earnings["total_paid"] == 1800.0
