"""DispatchNotifications command + handler: the outbox worker.

Invoked by a background job. Sends every pending notification and every
failed one that still has retries left, recording the outcome on each.
A failing channel never aborts the batch.
"""

import structlog
from protean import handle
from protean.fields import Integer
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.notification.channel import get_channel
from marketplace.notification.notification import Notification, NotificationChannel, NotificationStatus

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Notification")
class DispatchNotifications:
    limit = Integer(default=100, min_value=1)


@marketplace.command_handler(part_of=Notification)
class DispatchNotificationsHandler:
    @handle(DispatchNotifications)
    def dispatch(self, command):
        repo = current_domain.repository_for(Notification)

        queued = repo._dao.query.filter(status=NotificationStatus.PENDING.value).limit(None).all().items
        retryable = [
            n for n in repo._dao.query.filter(status=NotificationStatus.FAILED.value).limit(None).all().items if n.can_retry
        ]
        batch = sorted(queued + retryable, key=lambda n: n.created_at)[: command.limit or 100]

        sent = failed = 0
        for notification in batch:
            if notification.status == NotificationStatus.FAILED.value:
                notification.retry()

            try:
                result = _dispatch_via_channel(get_channel(notification.channel), notification)
                if result.get("status") == "sent":
                    notification.mark_sent()
                    sent += 1
                else:
                    notification.mark_failed(result.get("error", "Unknown dispatch error"))
                    failed += 1
            except Exception as e:
                notification.mark_failed(str(e))
                failed += 1
                logger.error(
                    "Notification dispatch failed",
                    notification_id=str(notification.id),
                    channel=notification.channel,
                    error=str(e),
                )

            repo.add(notification)

        logger.info("Notification batch dispatched", sent=sent, failed=failed)
        return {"sent": sent, "failed": failed}


def _dispatch_via_channel(adapter, notification: Notification) -> dict:
    """Route dispatch to the correct adapter method based on channel."""
    channel = notification.channel

    if channel == NotificationChannel.SMS.value:
        return adapter.send(to=notification.recipient, body=notification.body)
    elif channel == NotificationChannel.EMAIL.value:
        return adapter.send(to=notification.recipient, subject=notification.subject or "", body=notification.body)
    elif channel == NotificationChannel.INVOICE.value:
        return adapter.request_invoice(order_id=str(notification.order_id))

    raise ValueError(f"Unknown channel: {channel}")
