"""Human-readable text for dispatch SMS and tender emails."""

from django.utils import timezone

from drivers.models import Driver
from shipments.models import Shipment

ACCEPT_REPLY = "1"
REJECT_REPLY = "2"


def _pickup_time(shipment: Shipment) -> str:
    if not shipment.pickup_window_start:
        return "ASAP"
    local = timezone.localtime(shipment.pickup_window_start)
    return f"{local:%a, %b} {local.day}, {local.hour % 12 or 12}:{local:%M %p}"


def build_dispatch_message(shipment: Shipment, driver: Driver) -> str:
    """Build the SMS sent to a driver for a new dispatch."""
    pickup = f"{shipment.origin_city}, {shipment.origin_state}"
    destination = f"{shipment.destination_city}, {shipment.destination_state}"
    if shipment.total_weight:
        weight = f"{shipment.total_weight:,.0f} lbs"
    else:
        weight = "Weight TBD"
    equipment = shipment.get_equipment_type_display()

    return (
        f"Dispatch Alert: Load {shipment.reference_number} picking up in {pickup} "
        f"at {_pickup_time(shipment)}. Dest: {destination}. {weight}, {equipment}. "
        f"Reply '{ACCEPT_REPLY}' to Confirm, '{REJECT_REPLY}' to Reject."
    )


def build_tender_email(offer) -> tuple:
    """Return ``(subject, body)`` for a tender notification email."""
    shipment = offer.shipment
    subject = f"Load tender {shipment.reference_number}: {shipment.origin_city} to {shipment.destination_city}"
    expires = timezone.localtime(offer.expires_at).strftime("%Y-%m-%d %H:%M %Z") if offer.expires_at else "n/a"
    body = (
        f"You have a new load tender from {offer.tenant.name}.\n\n"
        f"Load: {shipment.reference_number}\n"
        f"Lane: {shipment.origin_city}, {shipment.origin_state} -> "
        f"{shipment.destination_city}, {shipment.destination_state}\n"
        f"Equipment: {shipment.get_equipment_type_display()}\n"
        f"Rate: ${offer.amount}\n"
        f"Offer expires: {expires}\n"
    )
    notes = (offer.payload or {}).get("notes")
    if notes:
        body += f"\nNotes: {notes}\n"
    return subject, body
