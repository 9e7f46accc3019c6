"""Tests for payment initiation, provider webhooks and verification polling."""

import json

import pytest
from protean import current_domain

from marketplace.errors import AlreadyPaid, ExternalProviderError, PaymentClosed, PaymentNotFound
from marketplace.notification.notification import Notification
from marketplace.order.order import load_order
from marketplace.payment.initiation import initiate_payment
from marketplace.payment.payment import find_payment_for_order
from marketplace.payment.verification import verify_payment
from marketplace.payment.webhook import ProcessPaymentWebhook, map_provider_status, receive_webhook


def _notifications(order_id, notification_type=None):
    notifications = (
        current_domain.repository_for(Notification)._dao.query.filter(order_id=str(order_id)).all().items
    )
    if notification_type:
        return [n for n in notifications if n.notification_type == notification_type]
    return notifications


@pytest.fixture()
def order_id(two_supplier_order):
    return two_supplier_order["order_id"]


@pytest.fixture()
def initiated(order_id):
    return initiate_payment(order_id, "+237670000000")


class TestMapProviderStatus:
    @pytest.mark.parametrize(
        "provider_status, expected",
        [("SUCCESSFUL", "PAID"), ("successful", "PAID"), ("FAILED", "FAILED"), ("PENDING", "PENDING")],
    )
    def test_known_statuses(self, provider_status, expected):
        assert map_provider_status(provider_status).value == expected

    def test_unknown_status_stays_pending(self):
        assert map_provider_status("REJECTED_BY_BANK").value == "PENDING"
        assert map_provider_status(None).value == "PENDING"


class TestInitiatePayment:
    def test_success_stores_transaction_and_reference(self, order_id, initiated, gateway):
        payment = find_payment_for_order(order_id)
        assert payment.transaction_id == initiated["transaction_id"]
        assert payment.transaction_id.startswith("TXN-")
        assert payment.provider_reference == gateway.calls[-1]["reference_id"]
        assert payment.provider == "MTN_MOMO"
        assert initiated["status"] == "PENDING"

    def test_gateway_receives_order_total(self, initiated, gateway):
        call = gateway.calls[-1]
        assert call["amount"] == 4500.0
        assert call["currency"] == "XAF"
        assert call["external_id"] == initiated["transaction_id"]

    def test_provider_rejection_fails_payment_and_order(self, order_id, gateway):
        gateway.configure(should_succeed=False, failure_reason="Payer not found")
        with pytest.raises(ExternalProviderError) as exc:
            initiate_payment(order_id, "+237670000000")

        assert exc.value.retryable
        payment = find_payment_for_order(order_id)
        assert payment.status == "FAILED"
        assert payment.failure_reason == "Payer not found"
        assert load_order(order_id).payment_status == "FAILED"

    def test_timeout_keeps_payment_pending_and_pollable(self, order_id, gateway):
        gateway.configure(should_time_out=True)
        with pytest.raises(ExternalProviderError):
            initiate_payment(order_id, "+237670000000")

        payment = find_payment_for_order(order_id)
        assert payment.status == "PENDING"
        assert payment.provider_reference == gateway.calls[-1]["reference_id"]
        assert load_order(order_id).payment_status == "PENDING"

    def test_reinitiating_pending_payment_issues_new_transaction(self, order_id, initiated):
        second = initiate_payment(order_id, "+237670000000")
        assert second["transaction_id"] != initiated["transaction_id"]
        assert find_payment_for_order(order_id).transaction_id == second["transaction_id"]

    def test_paid_order_cannot_be_charged_again(self, order_id, initiated):
        receive_webhook({"externalId": initiated["transaction_id"], "status": "SUCCESSFUL"})
        with pytest.raises(AlreadyPaid):
            initiate_payment(order_id, "+237670000000")

    def test_failed_payment_is_closed(self, order_id, initiated):
        receive_webhook({"externalId": initiated["transaction_id"], "status": "FAILED"})
        with pytest.raises(PaymentClosed):
            initiate_payment(order_id, "+237670000000")


class TestPaymentWebhook:
    def test_successful_marks_payment_and_order_paid(self, order_id, initiated):
        ack = receive_webhook(
            {
                "externalId": initiated["transaction_id"],
                "status": "SUCCESSFUL",
                "financialTransactionId": "fin-001",
            }
        )
        assert ack == {"received": True, "status": "PAID"}

        payment = find_payment_for_order(order_id)
        assert payment.status == "PAID"
        assert payment.provider_reference == "fin-001"
        assert json.loads(payment.webhook_payload)["financialTransactionId"] == "fin-001"
        assert load_order(order_id).payment_status == "PAID"

    def test_successful_queues_receipt_and_invoice(self, order_id, initiated):
        receive_webhook({"externalId": initiated["transaction_id"], "status": "SUCCESSFUL"})
        receipts = _notifications(order_id, "PaymentReceipt")
        assert sorted(n.channel for n in receipts) == ["Email", "SMS"]
        assert len(_notifications(order_id, "Invoice")) == 2

    def test_failed_marks_payment_failed_and_sends_sms(self, order_id, initiated):
        receive_webhook(
            {
                "externalId": initiated["transaction_id"],
                "status": "FAILED",
                "reason": {"code": "NOT_ENOUGH_FUNDS", "message": "Insufficient funds"},
            }
        )
        payment = find_payment_for_order(order_id)
        assert payment.status == "FAILED"
        assert payment.failure_reason == "Insufficient funds"
        assert load_order(order_id).payment_status == "FAILED"

        failures = _notifications(order_id, "PaymentFailed")
        assert [n.channel for n in failures] == ["SMS"]
        assert len(_notifications(order_id, "Invoice")) == 1

    def test_pending_only_stores_payload(self, order_id, initiated):
        ack = receive_webhook({"externalId": initiated["transaction_id"], "status": "PENDING"})
        assert ack["status"] == "PENDING"
        payment = find_payment_for_order(order_id)
        assert payment.status == "PENDING"
        assert payment.webhook_payload is not None

    def test_duplicate_notification_has_no_effect(self, order_id, initiated):
        payload = {"externalId": initiated["transaction_id"], "status": "SUCCESSFUL"}
        receive_webhook(payload)
        before = len(_notifications(order_id))
        paid_at = find_payment_for_order(order_id).paid_at

        ack = receive_webhook(payload)

        assert ack["status"] == "PAID"
        assert len(_notifications(order_id)) == before
        assert find_payment_for_order(order_id).paid_at == paid_at

    def test_conflicting_notification_after_paid_is_ignored(self, order_id, initiated):
        receive_webhook({"externalId": initiated["transaction_id"], "status": "SUCCESSFUL"})
        ack = receive_webhook({"externalId": initiated["transaction_id"], "status": "FAILED"})
        assert ack["status"] == "PAID"
        assert load_order(order_id).payment_status == "PAID"

    def test_unknown_transaction_is_acknowledged(self):
        assert receive_webhook({"externalId": "TXN-UNKNOWN00000", "status": "SUCCESSFUL"}) == {
            "received": True,
            "status": None,
        }

    def test_payload_without_external_id_is_acknowledged(self):
        assert receive_webhook({"status": "SUCCESSFUL"})["received"] is True


class TestProcessPaymentWebhookCommand:
    def test_command_applies_outcome_and_keeps_raw_body(self, order_id, initiated):
        body = {"externalId": initiated["transaction_id"], "status": "SUCCESSFUL", "financialTransactionId": "fin-77"}
        status = current_domain.process(
            ProcessPaymentWebhook(
                external_id=initiated["transaction_id"],
                status="SUCCESSFUL",
                financial_transaction_id="fin-77",
                raw_payload=json.dumps(body),
            ),
            asynchronous=False,
        )

        assert status == "PAID"
        payment = find_payment_for_order(order_id)
        assert json.loads(payment.webhook_payload) == body
        assert load_order(order_id).payment_status == "PAID"

    def test_command_without_raw_body_records_its_fields(self, order_id, initiated):
        current_domain.process(
            ProcessPaymentWebhook(external_id=initiated["transaction_id"], status="FAILED", reason="Declined"),
            asynchronous=False,
        )
        stored = json.loads(find_payment_for_order(order_id).webhook_payload)
        assert stored["status"] == "FAILED"
        assert stored["reason"] == "Declined"


class TestWebhookLogging:
    def test_reconciled_webhook_logs_no_failure(self, initiated, caplog):
        ack = receive_webhook({"externalId": initiated["transaction_id"], "status": "SUCCESSFUL"})
        assert ack["status"] == "PAID"
        assert "Payment webhook processing failed" not in caplog.text

    def test_processing_error_is_logged_and_acknowledged(self, initiated, caplog, monkeypatch):
        def broken_load_order(order_id):
            raise RuntimeError("order store unavailable")

        monkeypatch.setattr("marketplace.payment.webhook.load_order", broken_load_order)

        ack = receive_webhook({"externalId": initiated["transaction_id"], "status": "SUCCESSFUL"})

        assert ack == {"received": True, "status": None}
        assert "Payment webhook processing failed" in caplog.text


class TestVerifyPayment:
    def test_provider_success_is_applied(self, order_id, initiated, gateway):
        payment = find_payment_for_order(order_id)
        gateway.set_status(payment.provider_reference, "SUCCESSFUL", financial_transaction_id="fin-777")

        assert verify_payment(initiated["transaction_id"]) == "PAID"
        assert load_order(order_id).payment_status == "PAID"
        assert find_payment_for_order(order_id).provider_reference == "fin-777"

    def test_provider_failure_is_applied(self, order_id, initiated, gateway):
        payment = find_payment_for_order(order_id)
        gateway.set_status(payment.provider_reference, "FAILED", reason="Expired")

        assert verify_payment(initiated["transaction_id"]) == "FAILED"
        assert find_payment_for_order(order_id).failure_reason == "Expired"

    def test_still_pending(self, initiated):
        assert verify_payment(initiated["transaction_id"]) == "PENDING"

    def test_provider_unreachable_returns_stored_status(self, initiated, gateway):
        gateway.configure(should_time_out=True)
        assert verify_payment(initiated["transaction_id"]) == "PENDING"

    def test_settled_payment_is_not_polled(self, initiated, gateway):
        receive_webhook({"externalId": initiated["transaction_id"], "status": "SUCCESSFUL"})
        calls = len(gateway.calls)
        assert verify_payment(initiated["transaction_id"]) == "PAID"
        assert len(gateway.calls) == calls

    def test_unknown_transaction(self):
        with pytest.raises(PaymentNotFound):
            verify_payment("TXN-UNKNOWN00000")
