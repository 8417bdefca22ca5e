"""
Delivery of offer domain events.

Connected to ``offer_event`` in NotificationsConfig.ready(). Every event is
broadcast to the tenant's dispatch board; a newly created dispatch is also
texted to its driver and a newly created tender is emailed to its carrier.
Any exception raised here reaches the coordinator through ``send_robust`` and
marks the workflow result as degraded; the committed offer state is kept.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.core.mail import send_mail

from offers.models import Offer
from services.offer_workflow.events import OFFER_CREATED, OfferEvent
from services.offer_workflow.messages import build_tender_email
from .providers import NotificationDeliveryError, get_sms_provider

logger = logging.getLogger(__name__)


def board_group_name(tenant_id: int) -> str:
    return f"tenant_{tenant_id}"


def handle_offer_event(sender, event: OfferEvent, **kwargs):
    """Signal receiver: deliver inline, or hand off to Celery when configured."""
    if settings.OFFER_NOTIFICATIONS_ASYNC:
        from offers.tasks import deliver_offer_notification_task

        deliver_offer_notification_task.delay(event.as_dict())
        return
    deliver_offer_event(event)


def deliver_offer_event(event: OfferEvent) -> None:
    broadcast_to_board(event)

    if event.name != OFFER_CREATED:
        return

    offer = Offer.objects.select_related('shipment', 'carrier', 'driver', 'tenant').get(id=event.offer_id)
    if offer.kind == Offer.Kind.DISPATCH:
        send_dispatch_sms(offer)
    else:
        send_tender_email(offer)


def broadcast_to_board(event: OfferEvent) -> bool:
    """
    Send an event to the tenant's dispatch board group: tenant_<tenant_id>

    Returns:
        True if sent, False when no channel layer is configured
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return False

    async_to_sync(channel_layer.group_send)(
        board_group_name(event.tenant_id),
        {
            "type": "offer.event",
            "event": event.as_dict(),
        },
    )
    return True


def send_dispatch_sms(offer: Offer) -> str:
    """
    Text the dispatch message to the offer's driver.

    Returns:
        Provider message id

    Raises:
        NotificationDeliveryError: If the provider did not accept the message
    """
    driver = offer.driver
    message = (offer.payload or {}).get("message", "")
    result = get_sms_provider().send_sms(driver.phone_number, message)
    if not result.success:
        logger.error("Dispatch SMS for offer %s to %s failed: %s", offer.id, driver.phone_number, result.error)
        raise NotificationDeliveryError(f"SMS to {driver.phone_number} failed: {result.error}")

    logger.info("Dispatch SMS for offer %s sent to driver %s (%s)", offer.id, driver.id, result.message_id)
    return result.message_id


def send_tender_email(offer: Offer) -> None:
    carrier = offer.carrier
    if not carrier.email:
        raise NotificationDeliveryError(f"Carrier {carrier.name} has no email address for tender {offer.id}")

    subject, body = build_tender_email(offer)
    send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [carrier.email], fail_silently=False)
    logger.info("Tender email for offer %s sent to %s", offer.id, carrier.email)
