"""
Core offer lifecycle operations.

This module contains the public operations of the offer workflow: creating
offers, moving them through the state machine, cancelling them and querying
them. Every write goes through the OfferCoordinator so that offer, shipment and
audit changes commit together.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Union

from django.db import IntegrityError, transaction
from django.db.models import Count
from django.utils import timezone

from accounts.models import Tenant
from carriers.models import Carrier
from drivers.models import Driver
from offers.models import Offer
from shipments.models import Shipment
from . import state_machine
from .cascade import resolve_siblings
from .coordinator import UnitOfWork, WorkflowResult, coordinator
from .details import OfferDetails, validate_details
from .eligibility import check_driver_eligible, check_eligible
from .events import OFFER_CREATED
from .exceptions import (
    ActorIneligibleError,
    ActorNotFoundError,
    InvalidOfferDetailsError,
    OfferConflictError,
    OfferExpiredError,
    OfferNotFoundError,
    ShipmentNotFoundError,
)
from .messages import build_dispatch_message

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"

DECISION_TARGETS = {
    "ACCEPT": Offer.State.ACCEPTED,
    "REJECT": Offer.State.REJECTED,
}

ACTIVE_DISPATCH_STATES = (Offer.State.OFFERED, Offer.State.ACCEPTED)


# ===================== Lookups =====================

def _lock_shipment(tenant: Tenant, shipment_id: int) -> Shipment:
    try:
        return Shipment.objects.select_for_update().get(id=shipment_id, tenant=tenant)
    except (Shipment.DoesNotExist, ValueError, TypeError):
        raise ShipmentNotFoundError(f"Shipment {shipment_id} not found")


def _get_actor(tenant: Tenant, kind: str, actor_id: int) -> Union[Carrier, Driver]:
    model = Carrier if kind == Offer.Kind.TENDER else Driver
    try:
        return model.objects.get(id=actor_id, tenant=tenant)
    except (model.DoesNotExist, ValueError, TypeError):
        raise ActorNotFoundError(f"{model.__name__} {actor_id} not found")


def _lock_offer(offer_id: int, tenant: Optional[Tenant] = None) -> Offer:
    """
    Lock the offer's shipment, then the offer itself.

    The shipment id is read without a lock first so that every caller takes
    the shipment row before any offer row.
    """
    lookup = Offer.objects.all()
    if tenant is not None:
        lookup = lookup.filter(tenant=tenant)
    try:
        shipment_id = lookup.values_list("shipment_id", flat=True).get(id=offer_id)
    except (Offer.DoesNotExist, ValueError, TypeError):
        raise OfferNotFoundError(f"Offer {offer_id} not found")

    shipment = Shipment.objects.select_for_update().get(id=shipment_id)
    offer = Offer.objects.select_for_update().get(id=offer_id)
    offer.shipment = shipment
    return offer


# ===================== Create =====================

def create_offer(
    tenant: Tenant,
    shipment_id: int,
    kind: str,
    actor_id: int,
    details: OfferDetails,
    created_by=None,
) -> WorkflowResult:
    """
    Create an OFFERED tender or dispatch for one carrier or driver.

    Args:
        tenant: Tenant the caller acts for; every lookup is scoped to it
        shipment_id: ID of the shipment being offered
        kind: Offer.Kind.TENDER or Offer.Kind.DISPATCH
        actor_id: Carrier ID for a tender, driver ID for a dispatch
        details: TenderDetails or DispatchDetails matching ``kind``
        created_by: User creating the offer (optional)

    Returns:
        WorkflowResult with the created offer

    Raises:
        InvalidOfferDetailsError: If ``details`` does not fit ``kind``
        ShipmentNotFoundError: If the shipment is not in the tenant
        ActorNotFoundError: If the carrier/driver is not in the tenant
        InvalidShipmentStateError: If the shipment cannot take this kind of offer
        ActorIneligibleError: If the actor fails the eligibility gate
        OfferConflictError: If an active offer for the same actor already exists
    """
    validate_details(kind, details)
    responder = str(created_by.id) if created_by is not None else SYSTEM_ACTOR

    def work(unit: UnitOfWork) -> WorkflowResult:
        shipment = _lock_shipment(tenant, shipment_id)
        actor = _get_actor(tenant, kind, actor_id)

        has_accepted_tender = shipment.offers.filter(
            kind=Offer.Kind.TENDER, state=Offer.State.ACCEPTED
        ).exists()
        state_machine.check_shipment_accepts_offer(shipment, kind, has_accepted_tender)

        eligibility = check_eligible(kind, actor)
        if not eligibility.eligible:
            logger.warning(
                "Refused %s for shipment %s: %s %s ineligible (%s)",
                kind, shipment.reference_number, type(actor).__name__, actor.id, eligibility.reason,
            )
            raise ActorIneligibleError(eligibility.reason)

        _ensure_no_active_offer(shipment, kind, actor)

        now = timezone.now()
        fields = _offer_fields(kind, actor, details, shipment, now)
        try:
            with transaction.atomic():
                offer = Offer.objects.create(
                    tenant=tenant,
                    shipment=shipment,
                    kind=kind,
                    created_by=created_by,
                    created_at=now,
                    **fields,
                )
        except IntegrityError:
            raise OfferConflictError(
                f"An active {kind.lower()} already exists for this {type(actor).__name__.lower()}"
            )

        note = _creation_note(offer, actor)
        unit.record(offer, Offer.State.OFFERED, responder, note, now)
        unit.emit(OFFER_CREATED, offer, note)

        if kind == Offer.Kind.DISPATCH and shipment.assigned_driver_id is None:
            unit.update_shipment(shipment, assigned_driver=actor)

        logger.info("Created %s offer %s for shipment %s", kind, offer.id, shipment.reference_number)
        return WorkflowResult(
            success=True,
            offer=offer,
            message=note,
            extra={"expires_at": offer.expires_at},
        )

    return coordinator.commit(work)


def _ensure_no_active_offer(shipment: Shipment, kind: str, actor) -> None:
    offers = shipment.offers.filter(kind=kind)
    if kind == Offer.Kind.TENDER:
        exists = offers.filter(carrier=actor, state=Offer.State.OFFERED).exists()
    else:
        exists = offers.filter(driver=actor, state__in=ACTIVE_DISPATCH_STATES).exists()
    if exists:
        raise OfferConflictError(
            f"An active {kind.lower()} already exists for this {type(actor).__name__.lower()}"
        )


def _offer_fields(kind: str, actor, details: OfferDetails, shipment: Shipment, now) -> Dict[str, Any]:
    if kind == Offer.Kind.TENDER:
        return {
            "carrier": actor,
            "amount": details.amount,
            "offer_type": details.offer_type,
            "payload": details.as_payload(),
            "expires_at": now + timedelta(hours=details.expiry_hours),
        }

    payload = details.as_payload()
    if not payload["message"]:
        payload["message"] = build_dispatch_message(shipment, actor)
    return {
        "driver": actor,
        "offer_type": details.dispatch_type,
        "payload": payload,
        "expires_at": None,
    }


def _creation_note(offer: Offer, actor) -> str:
    if offer.kind == Offer.Kind.TENDER:
        return f"Tendered to carrier {actor.name} at ${offer.amount}"
    return f"Dispatched to driver {actor.full_name} ({offer.offer_type.lower()})"


# ===================== Transitions =====================

def transition(
    offer_id: int,
    target_state: str,
    responder: str,
    note: str = "",
    *,
    tenant: Optional[Tenant] = None,
    actor_id: Optional[int] = None,
) -> WorkflowResult:
    """
    Move an offer out of OFFERED and apply the shipment side effects.

    Args:
        offer_id: ID of the offer
        target_state: ACCEPTED, REJECTED, EXPIRED or CANCELLED
        responder: User id, ``sms:<phone>`` or ``system``
        note: Free-text reason recorded on the offer and the audit trail
        tenant: Scope the lookup to this tenant (None for system callers)
        actor_id: When given, must match the offer's carrier/driver

    Returns:
        WorkflowResult with the updated offer and the number of siblings cancelled

    Raises:
        OfferNotFoundError: If the offer does not exist for this tenant/actor
        InvalidTransitionError: If the offer is already terminal
        InvalidShipmentStateError: If the shipment no longer allows the accept
        OfferExpiredError: If an accept arrived after expiry (the EXPIRED move is kept)
    """
    def work(unit: UnitOfWork) -> WorkflowResult:
        offer = _lock_offer(offer_id, tenant)
        if actor_id is not None and str(offer.actor_id) != str(actor_id):
            raise OfferNotFoundError(f"Offer {offer_id} not found for actor {actor_id}")

        now = timezone.now()
        if (
            target_state == Offer.State.ACCEPTED
            and offer.state == Offer.State.OFFERED
            and offer.is_past_expiry(now)
        ):
            unit.transition(offer, Offer.State.EXPIRED, SYSTEM_ACTOR, "Expired before acceptance", now)
            logger.info("Offer %s expired at %s; late accept refused", offer.id, offer.expires_at)
            return WorkflowResult(
                success=False,
                offer=offer,
                message=f"Offer {offer.id} expired at {offer.expires_at.isoformat()}",
                error_code="expired",
            )

        state_machine.validate_transition(offer, target_state)
        shipment = offer.shipment
        updates = state_machine.shipment_effects(offer, target_state, shipment)

        unit.transition(offer, target_state, responder, note, now)
        if updates:
            unit.update_shipment(shipment, **updates)

        if target_state == Offer.State.ACCEPTED and offer.kind == Offer.Kind.DISPATCH:
            unit.update_driver(offer.driver, status=Driver.Status.ON_LOAD, last_dispatch_at=now)

        cancelled = 0
        if target_state == Offer.State.ACCEPTED:
            cancelled = resolve_siblings(unit, shipment.id, offer.kind, offer.id)

        logger.info("Offer %s moved to %s by %s", offer.id, target_state, responder)
        return WorkflowResult(
            success=True,
            offer=offer,
            message=f"Offer {target_state.lower()}",
            cancelled_count=cancelled,
        )

    result = coordinator.commit(work)
    if result.error_code == "expired":
        raise OfferExpiredError(result.message)
    return result


def respond_to_offer(
    tenant: Tenant,
    offer_id: int,
    actor_id: int,
    decision: str,
    responder: str,
    note: str = "",
) -> WorkflowResult:
    """Apply an ACCEPT or REJECT decision from the offer's carrier or driver."""
    try:
        target = DECISION_TARGETS[str(decision).upper()]
    except KeyError:
        raise InvalidOfferDetailsError(f"Unknown decision '{decision}'")
    return transition(offer_id, target, responder, note, tenant=tenant, actor_id=actor_id)


def cancel_offer(tenant: Tenant, offer_id: int, responder: str, reason: str = "") -> WorkflowResult:
    """Withdraw an OFFERED offer. Terminal offers are never reopened."""
    return transition(
        offer_id,
        Offer.State.CANCELLED,
        responder,
        reason or "Cancelled by dispatcher",
        tenant=tenant,
    )


# ===================== Queries =====================

def get_offer(tenant: Tenant, offer_id: int) -> Offer:
    """Fetch one offer, expiring it first if it is overdue."""
    from .expiry import observe_expiry

    try:
        offer = Offer.objects.select_related("shipment", "carrier", "driver").get(
            id=offer_id, tenant=tenant
        )
    except (Offer.DoesNotExist, ValueError, TypeError):
        raise OfferNotFoundError(f"Offer {offer_id} not found")
    return observe_expiry([offer])[0]


def list_offers(
    tenant: Tenant,
    shipment_id: Optional[int] = None,
    kind: Optional[str] = None,
    carrier_id: Optional[int] = None,
    driver_id: Optional[int] = None,
    state: Optional[str] = None,
) -> List[Offer]:
    """List the tenant's offers, newest first, with overdue ones expired."""
    from .expiry import observe_expiry

    offers = Offer.objects.filter(tenant=tenant).select_related("shipment", "carrier", "driver")
    if shipment_id is not None:
        offers = offers.filter(shipment_id=shipment_id)
    if kind:
        offers = offers.filter(kind=kind)
    if carrier_id is not None:
        offers = offers.filter(carrier_id=carrier_id)
    if driver_id is not None:
        offers = offers.filter(driver_id=driver_id)

    result = observe_expiry(list(offers.order_by("-created_at", "-id")))
    if state:
        result = [offer for offer in result if offer.state == state]
    return result


def list_shipment_offers(tenant: Tenant, shipment_id: int) -> List[Offer]:
    if not Shipment.objects.filter(id=shipment_id, tenant=tenant).exists():
        raise ShipmentNotFoundError(f"Shipment {shipment_id} not found")
    return list_offers(tenant, shipment_id=shipment_id)


def get_driver_availability(tenant: Tenant, driver_id: int) -> Dict[str, Any]:
    """
    Report whether a driver can take a new dispatch and what they hold now.

    Returns:
        Dict with ``driver``, ``available``, ``reason`` and ``current_dispatch``
    """
    driver = _get_actor(tenant, Offer.Kind.DISPATCH, driver_id)
    eligibility = check_driver_eligible(driver)
    current = (
        Offer.objects.filter(
            tenant=tenant,
            driver=driver,
            kind=Offer.Kind.DISPATCH,
            state__in=ACTIVE_DISPATCH_STATES,
        )
        .select_related("shipment")
        .order_by("-created_at", "-id")
        .first()
    )
    return {
        "driver": driver,
        "available": eligibility.eligible,
        "reason": eligibility.reason,
        "current_dispatch": current,
    }


def get_offer_stats(tenant: Tenant, kind: Optional[str] = None) -> Dict[str, Any]:
    """
    Per-tenant offer analytics, optionally for one kind.

    Overdue offers are expired first so that the counts match what a listing
    would show.

    Returns:
        Dict with ``total``, ``by_state`` (every state, zero included),
        ``rejection_rate`` (percentage of all offers) and ``created_today``
    """
    from .expiry import expire_offer, find_overdue_offers

    overdue = find_overdue_offers().filter(tenant=tenant)
    if kind:
        overdue = overdue.filter(kind=kind)
    for offer in overdue:
        expire_offer(offer)

    offers = Offer.objects.filter(tenant=tenant)
    if kind:
        offers = offers.filter(kind=kind)

    by_state = {state: 0 for state in Offer.State.values}
    for row in offers.order_by().values("state").annotate(count=Count("id")):
        by_state[row["state"]] = row["count"]
    total = sum(by_state.values())

    start_of_day = timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)
    return {
        "kind": kind,
        "total": total,
        "by_state": by_state,
        "rejection_rate": round(by_state[Offer.State.REJECTED] * 100 / total, 2) if total else 0.0,
        "created_today": offers.filter(created_at__gte=start_of_day).count(),
    }
