"""Tests for SupplierPayout generation and status rules."""

from datetime import UTC, datetime, timedelta, timezone
from types import SimpleNamespace

from marketplace.payout.payout import PayoutStatus, SupplierPayout, period_key_for

START = datetime(2026, 9, 1, tzinfo=UTC)
END = datetime(2026, 9, 30, 23, 59, 59, tzinfo=UTC)


def _items():
    return [
        SimpleNamespace(id="item-1", total_price=2000.0, commission_amount=200.0),
        SimpleNamespace(id="item-2", total_price=500.0, commission_amount=50.0),
    ]


def _make_payout():
    return SupplierPayout.generate("sup-001", START, END, _items(), "XAF")


class TestPayoutGeneration:
    def test_amounts_are_summed(self):
        payout = _make_payout()
        assert payout.gross_amount == 2500.0
        assert payout.commission_amount == 250.0
        assert payout.net_amount == 2250.0

    def test_items_are_recorded(self):
        payout = _make_payout()
        assert payout.item_ids == ["item-1", "item-2"]
        assert payout.item_count == 2

    def test_starts_pending(self):
        assert _make_payout().status == PayoutStatus.PENDING.value

    def test_period_key_is_stable_across_timezones(self):
        shifted = START.astimezone(timezone(timedelta(hours=1)))
        assert period_key_for("sup-001", START, END) == period_key_for("sup-001", shifted, END)

    def test_naive_bounds_are_treated_as_utc(self):
        naive = datetime(2026, 9, 1)
        assert period_key_for("sup-001", naive, END) == period_key_for("sup-001", START, END)


class TestPayoutStatus:
    def test_pending_to_processing(self):
        payout = _make_payout()
        payout.change_status(PayoutStatus.PROCESSING)
        assert payout.status == "PROCESSING"

    def test_completed_stamps_paid_at_and_reference(self):
        payout = _make_payout()
        payout.change_status(PayoutStatus.COMPLETED, payment_reference="BANK-42")
        assert payout.paid_at is not None
        assert payout.payment_reference == "BANK-42"

    def test_failed_can_be_retried(self):
        payout = _make_payout()
        payout.change_status(PayoutStatus.FAILED, notes="Wrong account")
        payout.change_status(PayoutStatus.PENDING)
        assert payout.status == "PENDING"
        assert payout.notes == "Wrong account"

    def test_completed_payout_can_be_reopened(self):
        payout = _make_payout()
        payout.change_status(PayoutStatus.COMPLETED)
        payout.change_status(PayoutStatus.FAILED, notes="Bank returned the transfer")
        assert payout.status == "FAILED"
        assert payout.notes == "Bank returned the transfer"

    def test_every_completion_restamps_paid_at(self):
        payout = _make_payout()
        payout.change_status(PayoutStatus.COMPLETED)
        first_paid_at = payout.paid_at
        payout.change_status(PayoutStatus.PROCESSING)
        payout.change_status(PayoutStatus.COMPLETED)
        assert payout.paid_at >= first_paid_at

    def test_repeating_completed_keeps_paid_at(self):
        payout = _make_payout()
        payout.change_status(PayoutStatus.COMPLETED)
        first_paid_at = payout.paid_at
        payout.change_status(PayoutStatus.COMPLETED, payment_reference="BANK-43")
        assert payout.paid_at == first_paid_at
        assert payout.payment_reference == "BANK-43"

    def test_same_status_is_allowed(self):
        payout = _make_payout()
        payout.change_status(PayoutStatus.PENDING, notes="checked")
        assert payout.notes == "checked"
