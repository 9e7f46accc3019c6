"""Notification aggregate (CQRS): the outbox entry for one outbound message.

Settlement handlers write notifications in the same Unit of Work as the
state change that caused them, so a committed order or payment always has
its messages queued and a rolled-back one never does. Delivery happens later
in ``DispatchNotifications``; the settlement core only promises the enqueue.

State Machine:
    PENDING → SENT
    PENDING → FAILED → (retry) → PENDING
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from marketplace.domain import marketplace
from marketplace.notification.events import NotificationFailed, NotificationQueued, NotificationSent


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class NotificationType(Enum):
    ORDER_CONFIRMATION = "OrderConfirmation"
    PAYMENT_RECEIPT = "PaymentReceipt"
    PAYMENT_FAILED = "PaymentFailed"
    DELIVERY_UPDATE = "DeliveryUpdate"
    INVOICE = "Invoice"


class NotificationChannel(Enum):
    EMAIL = "Email"
    SMS = "SMS"
    INVOICE = "Invoice"  # PDF invoice generation request


class NotificationStatus(Enum):
    PENDING = "Pending"
    SENT = "Sent"
    FAILED = "Failed"


# ---------------------------------------------------------------------------
# State Machine
# ---------------------------------------------------------------------------
_VALID_TRANSITIONS = {
    NotificationStatus.PENDING: {NotificationStatus.SENT, NotificationStatus.FAILED},
    NotificationStatus.FAILED: {NotificationStatus.PENDING},  # Via retry
    NotificationStatus.SENT: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Notification:
    # Recipient: phone number, email address or order id for invoice requests
    recipient: String(required=True, max_length=255)

    notification_type: String(choices=NotificationType, required=True)
    channel: String(choices=NotificationChannel, required=True)

    # Content
    subject: String(max_length=500)
    body: Text(required=True)

    # Correlation
    order_id: Identifier()
    context_data: Text()  # JSON data used to render the template

    # Status
    status: String(choices=NotificationStatus, default=NotificationStatus.PENDING.value)
    sent_at: DateTime()
    failure_reason: String(max_length=500)

    # Retry
    retry_count: Integer(default=0)
    max_retries: Integer(default=3)

    # Timestamps
    created_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, recipient, notification_type, channel, body, subject=None, order_id=None, context_data=None, max_retries=3):
        """Create a new notification in PENDING status."""
        now = datetime.now(UTC)

        notification = cls(
            recipient=recipient,
            notification_type=notification_type,
            channel=channel,
            subject=subject,
            body=body,
            order_id=order_id,
            context_data=context_data,
            status=NotificationStatus.PENDING.value,
            retry_count=0,
            max_retries=max_retries,
            created_at=now,
            updated_at=now,
        )

        notification.raise_(
            NotificationQueued(
                notification_id=str(notification.id),
                notification_type=notification_type,
                channel=channel,
                order_id=str(order_id) if order_id else None,
                queued_at=now,
            )
        )

        return notification

    @property
    def can_retry(self) -> bool:
        return self.status == NotificationStatus.FAILED.value and self.retry_count < self.max_retries

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate state machine transition."""
        current = NotificationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_sent(self, sent_at=None):
        """Mark notification as handed to the channel."""
        self._assert_can_transition(NotificationStatus.SENT)

        now = sent_at or datetime.now(UTC)
        self.status = NotificationStatus.SENT.value
        self.sent_at = now
        self.failure_reason = None
        self.updated_at = now

        self.raise_(NotificationSent(notification_id=str(self.id), channel=self.channel, sent_at=now))

    def mark_failed(self, reason):
        self._assert_can_transition(NotificationStatus.FAILED)

        now = datetime.now(UTC)
        self.status = NotificationStatus.FAILED.value
        self.failure_reason = (reason or "")[:500]
        self.retry_count = self.retry_count + 1
        self.updated_at = now

        self.raise_(
            NotificationFailed(
                notification_id=str(self.id),
                channel=self.channel,
                reason=self.failure_reason,
                retry_count=self.retry_count,
                max_retries=self.max_retries,
                failed_at=now,
            )
        )

    def retry(self):
        """Put a failed notification back in the queue."""
        if not self.can_retry:
            raise ValidationError({"retry_count": ["Maximum retry attempts exceeded"]})

        self.status = NotificationStatus.PENDING.value
        self.updated_at = datetime.now(UTC)
