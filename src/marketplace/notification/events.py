"""Domain events for the Notification aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Notification")
class NotificationQueued:
    __version__ = 1

    notification_id = Identifier(required=True)
    notification_type = String(required=True)
    channel = String(required=True)
    order_id = Identifier()
    queued_at = DateTime(required=True)


@marketplace.event(part_of="Notification")
class NotificationSent:
    __version__ = 1

    notification_id = Identifier(required=True)
    channel = String(required=True)
    sent_at = DateTime(required=True)


@marketplace.event(part_of="Notification")
class NotificationFailed:
    __version__ = 1

    notification_id = Identifier(required=True)
    channel = String(required=True)
    reason = String()
    retry_count = Integer(required=True)
    max_retries = Integer(required=True)
    failed_at = DateTime(required=True)
