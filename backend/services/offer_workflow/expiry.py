"""
Offer expiry.

Expiry is lazy: an overdue OFFERED offer is moved to EXPIRED when something
looks at it (a query or a response). The optional sweeper in offers.tasks uses
``expire_overdue_offers`` to do the same on a schedule.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from django.utils import timezone

from offers.models import Offer
from .exceptions import InvalidTransitionError, OfferNotFoundError

logger = logging.getLogger(__name__)

EXPIRY_NOTE = "Expired without a response"


def expire_offer(offer: Offer) -> bool:
    """
    Expire one overdue offer and refresh it from the database.

    Returns:
        False when the offer was resolved by someone else first
    """
    from .lifecycle import SYSTEM_ACTOR, transition

    try:
        result = transition(offer.id, Offer.State.EXPIRED, SYSTEM_ACTOR, EXPIRY_NOTE)
    except (InvalidTransitionError, OfferNotFoundError):
        offer.refresh_from_db()
        return False
    offer.refresh_from_db()
    if result.degraded:
        logger.warning("Offer %s expired with notification warnings: %s", offer.id, result.warnings)
    return True


def observe_expiry(offers: Iterable[Offer], now: Optional[datetime] = None) -> List[Offer]:
    now = now or timezone.now()
    observed = []
    for offer in offers:
        if offer.state == Offer.State.OFFERED and offer.is_past_expiry(now):
            expire_offer(offer)
        observed.append(offer)
    return observed


def find_overdue_offers(now: Optional[datetime] = None):
    return Offer.objects.filter(
        state=Offer.State.OFFERED,
        expires_at__isnull=False,
        expires_at__lte=now or timezone.now(),
    ).order_by("expires_at", "id")


def expire_overdue_offers(now: Optional[datetime] = None, limit: Optional[int] = None) -> int:
    """
    Expire every overdue OFFERED offer.

    Returns:
        Number of offers moved to EXPIRED
    """
    overdue = find_overdue_offers(now)
    if limit:
        overdue = overdue[:limit]

    expired = 0
    for offer in overdue:
        if expire_offer(offer):
            expired += 1

    if expired:
        logger.info("Expired %s overdue offer(s)", expired)
    return expired
