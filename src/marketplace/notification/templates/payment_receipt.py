"""Payment receipt: queued when the provider confirms a payment."""

from marketplace.notification.notification import NotificationChannel, NotificationType


class PaymentReceiptTemplate:
    notification_type = NotificationType.PAYMENT_RECEIPT.value
    default_channels = [NotificationChannel.SMS.value, NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        return {
            "subject": f"Payment received for order {order_number}",
            "body": (
                f"Payment received for order {order_number}. "
                f"Amount: {context.get('total', 0):,.0f} {context.get('currency', 'XAF')}. Thank you!"
            ),
        }
