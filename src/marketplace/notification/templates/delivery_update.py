"""Delivery progress update."""

from marketplace.notification.notification import NotificationChannel, NotificationType

_STATUS_TEXT = {
    "PICKED_UP": "has been picked up by our courier",
    "IN_TRANSIT": "is on its way",
    "DELIVERED": "has been delivered",
}


class DeliveryUpdateTemplate:
    notification_type = NotificationType.DELIVERY_UPDATE.value
    default_channels = [NotificationChannel.SMS.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        status = context.get("delivery_status", "")
        text = _STATUS_TEXT.get(status, f"is now {status.replace('_', ' ').lower()}")
        return {
            "subject": f"Order {order_number} update",
            "body": f"Your order {order_number} {text}. Tracking: {context.get('tracking_number', 'N/A')}.",
        }
