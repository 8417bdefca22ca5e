"""
Offer state machine and the shipment effects of each transition.

OFFERED is the only non-terminal state. Every other state is final and any
further transition request is rejected.
"""

from typing import Any, Dict

from offers.models import Offer
from shipments.models import Shipment
from .exceptions import InvalidShipmentStateError, InvalidTransitionError

ALLOWED_TRANSITIONS = {
    Offer.State.OFFERED: frozenset({
        Offer.State.ACCEPTED,
        Offer.State.REJECTED,
        Offer.State.EXPIRED,
        Offer.State.CANCELLED,
    }),
    Offer.State.ACCEPTED: frozenset(),
    Offer.State.REJECTED: frozenset(),
    Offer.State.EXPIRED: frozenset(),
    Offer.State.CANCELLED: frozenset(),
}

# Shipment states in which a new offer of each kind may be created
CREATABLE_SHIPMENT_STATES = {
    Offer.Kind.TENDER: frozenset({Shipment.Status.QUOTED}),
    Offer.Kind.DISPATCH: frozenset({Shipment.Status.BOOKED, Shipment.Status.TENDERED}),
}

# Shipment states in which an ACCEPT of each kind may still land
ACCEPTABLE_SHIPMENT_STATES = {
    Offer.Kind.TENDER: frozenset({Shipment.Status.QUOTED}),
    Offer.Kind.DISPATCH: frozenset({
        Shipment.Status.BOOKED,
        Shipment.Status.TENDERED,
        Shipment.Status.DISPATCHED,
        Shipment.Status.CONFIRMED,
    }),
}

# Past these, a rejected dispatch no longer reopens the shipment
DISPATCH_COMMITTED_STATES = frozenset({
    Shipment.Status.CONFIRMED,
    Shipment.Status.IN_TRANSIT,
    Shipment.Status.DELIVERED,
    Shipment.Status.CANCELLED,
})


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def validate_transition(offer: Offer, target: str) -> None:
    if not can_transition(offer.state, target):
        raise InvalidTransitionError(
            f"Offer {offer.id} is {offer.state} and cannot move to {target}"
        )


def check_shipment_accepts_offer(shipment: Shipment, kind: str, has_accepted_tender: bool) -> None:
    """
    Raises:
        InvalidShipmentStateError: If the shipment cannot take a new offer of this kind
    """
    if shipment.status not in CREATABLE_SHIPMENT_STATES[kind]:
        raise InvalidShipmentStateError(
            f"Shipment {shipment.reference_number} is {shipment.status}; "
            f"{kind} offers need it to be {', '.join(sorted(CREATABLE_SHIPMENT_STATES[kind]))}"
        )
    if kind == Offer.Kind.DISPATCH and not has_accepted_tender:
        raise InvalidShipmentStateError(
            f"Shipment {shipment.reference_number} has no accepted tender to dispatch against"
        )


def shipment_effects(offer: Offer, target: str, shipment: Shipment) -> Dict[str, Any]:
    """
    Work out which shipment fields change when ``offer`` moves to ``target``.

    Returns a (possibly empty) mapping of field name to new value. The
    coordinator is the only caller that writes it back.

    Raises:
        InvalidShipmentStateError: If an accept arrives for a shipment that moved on
    """
    if target == Offer.State.ACCEPTED:
        if shipment.status not in ACCEPTABLE_SHIPMENT_STATES[offer.kind]:
            raise InvalidShipmentStateError(
                f"Shipment {shipment.reference_number} is {shipment.status} "
                f"and can no longer accept a {offer.kind.lower()}"
            )
        if offer.kind == Offer.Kind.TENDER:
            return {"status": Shipment.Status.BOOKED, "carrier_id": offer.carrier_id}
        if shipment.status == Shipment.Status.CONFIRMED:
            # Already confirmed by another driver; keep the primary assignment
            if shipment.assigned_driver_id is None:
                return {"assigned_driver_id": offer.driver_id}
            return {}
        return {"status": Shipment.Status.CONFIRMED, "assigned_driver_id": offer.driver_id}

    if (
        target == Offer.State.REJECTED
        and offer.kind == Offer.Kind.DISPATCH
        and shipment.assigned_driver_id == offer.driver_id
        and shipment.status not in DISPATCH_COMMITTED_STATES
    ):
        return {"status": Shipment.Status.TENDERED, "assigned_driver_id": None}

    return {}
