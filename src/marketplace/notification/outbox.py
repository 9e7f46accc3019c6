"""Enqueue helpers called by settlement handlers.

Each helper renders its template and adds Notification records to the
current Unit of Work; nothing is sent from here.
"""

import json

import structlog
from protean.utils.globals import current_domain

from marketplace.config import load_settings
from marketplace.notification.notification import Notification, NotificationChannel, NotificationType
from marketplace.notification.templates import get_template

logger = structlog.get_logger(__name__)


def enqueue(notification_type: NotificationType, channel: NotificationChannel, recipient, order_id, context):
    content = get_template(notification_type.value).render(context)
    notification = Notification.create(
        recipient=str(recipient),
        notification_type=notification_type.value,
        channel=channel.value,
        subject=content.get("subject"),
        body=content["body"],
        order_id=order_id,
        context_data=json.dumps(context, default=str),
        max_retries=load_settings().notification_max_retries,
    )
    current_domain.repository_for(Notification).add(notification)
    return notification


def _order_context(order, **extra) -> dict:
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "total": order.total,
        "currency": order.currency,
        **extra,
    }


def _to_customer(notification_type: NotificationType, order, context) -> list[Notification]:
    queued = [enqueue(notification_type, NotificationChannel.SMS, order.customer_phone, str(order.id), context)]
    if order.customer_email:
        queued.append(enqueue(notification_type, NotificationChannel.EMAIL, order.customer_email, str(order.id), context))
    return queued


def _invoice_request(order, context) -> Notification:
    return enqueue(NotificationType.INVOICE, NotificationChannel.INVOICE, str(order.id), str(order.id), context)


def enqueue_order_placed(order) -> list[Notification]:
    context = _order_context(order)
    queued = _to_customer(NotificationType.ORDER_CONFIRMATION, order, context)
    queued.append(_invoice_request(order, context))
    logger.debug("Order notifications queued", order_id=str(order.id), count=len(queued))
    return queued


def enqueue_payment_received(order) -> list[Notification]:
    context = _order_context(order)
    queued = [_invoice_request(order, context)]
    queued.extend(_to_customer(NotificationType.PAYMENT_RECEIPT, order, context))
    return queued


def enqueue_payment_failed(order, reason=None) -> list[Notification]:
    context = _order_context(order, reason=reason)
    return [
        enqueue(NotificationType.PAYMENT_FAILED, NotificationChannel.SMS, order.customer_phone, str(order.id), context)
    ]


def enqueue_delivery_update(order, delivery) -> list[Notification]:
    context = _order_context(order, delivery_status=delivery.status, tracking_number=delivery.tracking_number)
    return [
        enqueue(NotificationType.DELIVERY_UPDATE, NotificationChannel.SMS, order.customer_phone, str(order.id), context)
    ]
