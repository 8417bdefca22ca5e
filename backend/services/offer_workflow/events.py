"""
Domain events emitted by the offer coordinator after a successful commit.

Delivery (SMS, email, WebSocket) subscribes to ``offer_event``; the workflow
itself never calls a notifier.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict

from django.dispatch import Signal
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from offers.models import Offer

# Receivers get ``event=OfferEvent(...)``
offer_event = Signal()

OFFER_CREATED = "offer_created"
OFFER_ACCEPTED = "offer_accepted"
OFFER_REJECTED = "offer_rejected"
OFFER_EXPIRED = "offer_expired"
OFFER_CANCELLED = "offer_cancelled"

EVENT_FOR_STATE = {
    Offer.State.OFFERED: OFFER_CREATED,
    Offer.State.ACCEPTED: OFFER_ACCEPTED,
    Offer.State.REJECTED: OFFER_REJECTED,
    Offer.State.EXPIRED: OFFER_EXPIRED,
    Offer.State.CANCELLED: OFFER_CANCELLED,
}


@dataclass(frozen=True)
class OfferEvent:
    name: str
    offer_id: int
    tenant_id: int
    shipment_id: int
    kind: str
    state: str
    actor_id: int
    note: str = ""
    occurred_at: datetime = field(default_factory=timezone.now)

    @classmethod
    def from_offer(cls, name: str, offer: Offer, note: str = "") -> "OfferEvent":
        return cls(
            name=name,
            offer_id=offer.id,
            tenant_id=offer.tenant_id,
            shipment_id=offer.shipment_id,
            kind=offer.kind,
            state=offer.state,
            actor_id=offer.actor_id,
            note=note,
        )

    def as_dict(self) -> Dict[str, Any]:
        """JSON-safe form, used as the Celery task argument and WebSocket payload."""
        data = asdict(self)
        data["occurred_at"] = self.occurred_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OfferEvent":
        values = dict(data)
        values["occurred_at"] = parse_datetime(values["occurred_at"])
        return cls(**values)
