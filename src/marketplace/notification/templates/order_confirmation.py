"""Order confirmation: queued when checkout commits."""

from marketplace.notification.notification import NotificationChannel, NotificationType


class OrderConfirmationTemplate:
    notification_type = NotificationType.ORDER_CONFIRMATION.value
    default_channels = [NotificationChannel.SMS.value, NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        total = context.get("total", 0)
        currency = context.get("currency", "XAF")
        return {
            "subject": f"Order {order_number} received",
            "body": (
                f"Hello {context.get('customer_name', 'there')}, your order {order_number} "
                f"has been received. Total: {total:,.0f} {currency}."
            ),
        }
