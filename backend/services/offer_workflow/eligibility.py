"""Eligibility gate applied before an offer is created."""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from django.utils import timezone

from carriers.models import Carrier
from drivers.models import Driver
from offers.models import Offer

# ON_LOAD, SICK, VACATION and INACTIVE drivers cannot take a new dispatch
AVAILABLE_DRIVER_STATUSES = frozenset({Driver.Status.ACTIVE, Driver.Status.OFF_DUTY})


@dataclass(frozen=True)
class Eligibility:
    eligible: bool
    reason: Optional[str] = None


def check_carrier_eligible(carrier: Carrier) -> Eligibility:
    if not carrier.is_active:
        return Eligibility(False, f"Carrier {carrier.name} is deactivated")
    if carrier.status != Carrier.Status.ACTIVE:
        return Eligibility(False, f"Carrier {carrier.name} is {carrier.status}, not ACTIVE")
    return Eligibility(True)


def check_driver_eligible(driver: Driver, today: Optional[date] = None) -> Eligibility:
    """
    A driver is eligible when active, in an available duty status and holding
    an unexpired license and medical certificate. A document that expires
    today is still valid today.
    """
    today = today or timezone.localdate()

    if not driver.is_active:
        return Eligibility(False, f"Driver {driver.full_name} is deactivated")
    if driver.status not in AVAILABLE_DRIVER_STATUSES:
        return Eligibility(False, f"Driver status is {driver.status}")
    if driver.license_expiration_date and driver.license_expiration_date < today:
        return Eligibility(False, "License expired")
    if (
        driver.medical_certificate_expiration_date
        and driver.medical_certificate_expiration_date < today
    ):
        return Eligibility(False, "Medical certificate expired")
    return Eligibility(True)


def check_eligible(kind: str, actor: Union[Carrier, Driver], today: Optional[date] = None) -> Eligibility:
    """Dispatch to the carrier or driver rule depending on the offer kind."""
    if kind == Offer.Kind.TENDER:
        return check_carrier_eligible(actor)
    return check_driver_eligible(actor, today=today)
