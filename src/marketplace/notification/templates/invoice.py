"""Invoice generation request handed to the document renderer."""

from marketplace.notification.notification import NotificationChannel, NotificationType


class InvoiceTemplate:
    notification_type = NotificationType.INVOICE.value
    default_channels = [NotificationChannel.INVOICE.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        return {"subject": f"Invoice {order_number}", "body": f"Generate invoice for order {order_number}"}
