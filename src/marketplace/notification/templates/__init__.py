"""Template registry: maps NotificationType to template classes."""

from marketplace.notification.notification import NotificationType
from marketplace.notification.templates.delivery_update import DeliveryUpdateTemplate
from marketplace.notification.templates.invoice import InvoiceTemplate
from marketplace.notification.templates.order_confirmation import OrderConfirmationTemplate
from marketplace.notification.templates.payment_failed import PaymentFailedTemplate
from marketplace.notification.templates.payment_receipt import PaymentReceiptTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationType.ORDER_CONFIRMATION.value: OrderConfirmationTemplate,
    NotificationType.PAYMENT_RECEIPT.value: PaymentReceiptTemplate,
    NotificationType.PAYMENT_FAILED.value: PaymentFailedTemplate,
    NotificationType.DELIVERY_UPDATE.value: DeliveryUpdateTemplate,
    NotificationType.INVOICE.value: InvoiceTemplate,
}


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
