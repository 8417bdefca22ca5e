"""Celery tasks for offer background processing."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def expire_stale_offers_task(limit: int = None):
    """
    Periodic sweep that expires OFFERED tenders past their expiry.

    Scheduled by celery beat when OFFER_EXPIRY_SWEEP_ENABLED is set. Lazy
    expiry on read still applies when the sweep is off.
    """
    from services.offer_workflow import expire_overdue_offers

    expired = expire_overdue_offers(limit=limit)
    logger.info("Expiry sweep finished: %s offer(s) expired", expired)
    return expired


@shared_task(bind=True, max_retries=3, default_retry_delay=30)
def deliver_offer_notification_task(self, event_data: dict):
    """
    Deliver one offer event (board broadcast, SMS or email) outside the request.

    Used when OFFER_NOTIFICATIONS_ASYNC is enabled. Delivery failures are retried.
    """
    from notifications.dispatcher import deliver_offer_event
    from notifications.providers import NotificationDeliveryError
    from services.offer_workflow.events import OfferEvent

    event = OfferEvent.from_dict(event_data)
    try:
        deliver_offer_event(event)
    except NotificationDeliveryError as exc:
        logger.warning("Delivery of %s for offer %s failed, retrying: %s", event.name, event.offer_id, exc)
        raise self.retry(exc=exc)
    return True
