"""Tests for the Notification outbox entry lifecycle."""

import pytest
from protean.exceptions import ValidationError

from marketplace.notification.notification import Notification, NotificationStatus


def _make_notification(max_retries=3):
    return Notification.create(
        recipient="+237670000000",
        notification_type="OrderConfirmation",
        channel="SMS",
        body="Your order has been received.",
        order_id="ord-001",
        max_retries=max_retries,
    )


class TestNotificationLifecycle:
    def test_created_pending(self):
        notification = _make_notification()
        assert notification.status == NotificationStatus.PENDING.value
        assert notification.retry_count == 0

    def test_mark_sent(self):
        notification = _make_notification()
        notification.mark_sent()
        assert notification.status == "Sent"
        assert notification.sent_at is not None

    def test_sent_is_terminal(self):
        notification = _make_notification()
        notification.mark_sent()
        with pytest.raises(ValidationError):
            notification.mark_failed("late")

    def test_failure_counts_retries(self):
        notification = _make_notification()
        notification.mark_failed("SMS gateway down")
        assert notification.retry_count == 1
        assert notification.can_retry

    def test_retry_returns_to_pending(self):
        notification = _make_notification()
        notification.mark_failed("SMS gateway down")
        notification.retry()
        assert notification.status == "Pending"
        assert notification.retry_count == 1

    def test_retries_are_bounded(self):
        notification = _make_notification(max_retries=1)
        notification.mark_failed("down")
        assert not notification.can_retry
        with pytest.raises(ValidationError):
            notification.retry()
