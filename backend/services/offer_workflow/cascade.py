"""
Sibling resolution after an accept.

When the shipment's offer kind is configured to cascade, accepting one offer
cancels every other OFFERED offer of the same kind on the same shipment inside
the same unit of work.
"""

import logging
from typing import TYPE_CHECKING

from django.conf import settings

from offers.models import Offer

if TYPE_CHECKING:
    from .coordinator import UnitOfWork

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"

DEFAULT_CASCADE_ON_ACCEPT = {
    Offer.Kind.TENDER: True,
    Offer.Kind.DISPATCH: False,
}


def cascades_on_accept(kind: str) -> bool:
    policy = getattr(settings, "OFFER_CASCADE_ON_ACCEPT", DEFAULT_CASCADE_ON_ACCEPT)
    return bool(policy.get(kind, DEFAULT_CASCADE_ON_ACCEPT[kind]))


def resolve_siblings(unit: "UnitOfWork", shipment_id: int, kind: str, winning_offer_id: int) -> int:
    """
    Cancel the still-open competitors of an accepted offer.

    Siblings are locked in id order after the shipment row, which the caller
    already holds.

    Returns:
        The number of offers cancelled (0 when the kind does not cascade)
    """
    if not cascades_on_accept(kind):
        return 0

    siblings = (
        Offer.objects.select_for_update()
        .filter(shipment_id=shipment_id, kind=kind, state=Offer.State.OFFERED)
        .exclude(id=winning_offer_id)
        .order_by("id")
    )

    cancelled = 0
    for sibling in siblings:
        unit.transition(
            sibling,
            Offer.State.CANCELLED,
            responder=SYSTEM_ACTOR,
            note=f"superseded by accepted offer {winning_offer_id}",
        )
        cancelled += 1

    if cancelled:
        logger.info(
            "Cancelled %s sibling %s offer(s) on shipment %s after offer %s was accepted",
            cancelled, kind, shipment_id, winning_offer_id,
        )
    return cancelled
