"""Tests for OrderItem commission freezing and fulfillment transitions."""

import pytest
from protean.exceptions import ValidationError

from marketplace.cart.pricing import PricedLine
from marketplace.errors import Conflict, InvalidStatusTransition
from marketplace.order.order_item import FulfillmentStatus, OrderItem, commission_for


def _make_line(**overrides):
    defaults = {
        "item_id": "ci-001",
        "product_id": "prod-001",
        "name": "Woven Basket",
        "unit_price": 1000.0,
        "quantity": 2,
        "currency": "XAF",
        "supplier_id": "sup-001",
    }
    defaults.update(overrides)
    return PricedLine(**defaults)


def _make_item(rate=10.0, **overrides):
    return OrderItem.create("ord-001", _make_line(**overrides), rate, "XAF")


class TestCommission:
    def test_commission_for_rounds_to_cents(self):
        assert commission_for(999.99, 12.5) == 125.0
        assert commission_for(1.0, 33.3333) == 0.33

    def test_create_freezes_rate_and_amount(self):
        item = _make_item(rate=10.0)
        assert item.total_price == 2000.0
        assert item.commission_rate == 10.0
        assert item.commission_amount == 200.0
        assert item.net_amount == 1800.0

    def test_zero_rate_means_no_commission(self):
        item = _make_item(rate=0.0)
        assert item.commission_amount == 0.0

    def test_commission_inconsistent_with_rate_is_rejected(self):
        with pytest.raises(ValidationError):
            OrderItem(
                order_id="ord-001",
                product_id="prod-001",
                product_name="Woven Basket",
                unit_price=1000.0,
                quantity=2,
                total_price=2000.0,
                commission_rate=10.0,
                commission_amount=150.0,
            )


class TestFulfillmentTransitions:
    def test_walks_linear_path_and_stamps_timestamps(self):
        item = _make_item()
        for status in ("CONFIRMED", "PROCESSING", "SHIPPED", "DELIVERED"):
            item.advance_to(FulfillmentStatus(status))
        assert item.fulfillment_status == "DELIVERED"
        assert item.confirmed_at is not None
        assert item.shipped_at is not None
        assert item.delivered_at is not None

    def test_cannot_skip_states(self):
        item = _make_item()
        with pytest.raises(InvalidStatusTransition):
            item.advance_to(FulfillmentStatus.SHIPPED)

    def test_can_cancel_before_delivery(self):
        item = _make_item()
        item.advance_to(FulfillmentStatus.CONFIRMED)
        item.advance_to(FulfillmentStatus.CANCELLED)
        assert item.cancelled_at is not None

    def test_delivered_is_terminal(self):
        item = _make_item()
        for status in ("CONFIRMED", "PROCESSING", "SHIPPED", "DELIVERED"):
            item.advance_to(FulfillmentStatus(status))
        with pytest.raises(InvalidStatusTransition):
            item.advance_to(FulfillmentStatus.CANCELLED)

    def test_tracking_number_is_recorded(self):
        item = _make_item()
        item.advance_to(FulfillmentStatus.CONFIRMED, tracking_number="TRK-X1")
        assert item.tracking_number == "TRK-X1"


class TestPayoutClaim:
    def test_claim_sets_payout_id(self):
        item = _make_item()
        item.claim_for_payout("pay-001")
        assert str(item.payout_id) == "pay-001"

    def test_claim_by_another_payout_conflicts(self):
        item = _make_item()
        item.claim_for_payout("pay-001")
        with pytest.raises(Conflict):
            item.claim_for_payout("pay-002")

    def test_belongs_to(self):
        item = _make_item()
        assert item.belongs_to("sup-001")
        assert not item.belongs_to("sup-002")

    def test_platform_item_belongs_to_no_supplier(self):
        item = _make_item(supplier_id=None)
        assert not item.belongs_to("sup-001")
