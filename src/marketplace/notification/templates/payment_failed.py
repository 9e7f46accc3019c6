"""Payment failure: queued when the provider rejects a payment."""

from marketplace.notification.notification import NotificationChannel, NotificationType


class PaymentFailedTemplate:
    notification_type = NotificationType.PAYMENT_FAILED.value
    default_channels = [NotificationChannel.SMS.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        reason = context.get("reason")
        body = f"Payment failed for order {order_number}."
        if reason:
            body += f" Reason: {reason}."
        return {"subject": f"Payment failed for order {order_number}", "body": body + " Please try again."}
