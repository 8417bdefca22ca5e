"""
Kind-specific offer details.

A TENDER carries commercial terms for a carrier; a DISPATCH carries the
instruction text sent to a driver. Callers build one of the two dataclasses
and the workflow validates it against the offer kind.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Dict, Optional, Union

from django.conf import settings

from offers.models import Offer
from .exceptions import InvalidOfferDetailsError

TENDER_OFFER_TYPES = (Offer.OfferType.PRIMARY, Offer.OfferType.BACKUP, Offer.OfferType.SPOT)
DISPATCH_OFFER_TYPES = (Offer.OfferType.PRIMARY, Offer.OfferType.BACKUP, Offer.OfferType.EMERGENCY)


@dataclass
class TenderDetails:
    """Commercial terms of a tender to a carrier."""
    kind: ClassVar[str] = Offer.Kind.TENDER

    amount: Any
    expiry_hours: Optional[int] = None
    offer_type: str = Offer.OfferType.PRIMARY
    notes: str = ""

    def validate(self) -> None:
        try:
            amount = Decimal(str(self.amount))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidOfferDetailsError("Tender amount must be a number")
        if not amount.is_finite() or amount <= 0:
            raise InvalidOfferDetailsError("Tender amount must be greater than zero")
        self.amount = amount.quantize(Decimal("0.01"))

        if self.expiry_hours is None:
            self.expiry_hours = settings.OFFER_TENDER_DEFAULT_EXPIRY_HOURS
        low = settings.OFFER_TENDER_MIN_EXPIRY_HOURS
        high = settings.OFFER_TENDER_MAX_EXPIRY_HOURS
        try:
            hours = int(self.expiry_hours)
        except (TypeError, ValueError):
            raise InvalidOfferDetailsError("Tender expiry must be a whole number of hours")
        if not (low <= hours <= high):
            raise InvalidOfferDetailsError(
                f"Tender expiry must be between {low} and {high} hours"
            )
        self.expiry_hours = hours

        if self.offer_type not in TENDER_OFFER_TYPES:
            raise InvalidOfferDetailsError(f"Offer type '{self.offer_type}' is not valid for a tender")

    def as_payload(self) -> Dict[str, Any]:
        return {
            "expiry_hours": self.expiry_hours,
            "notes": self.notes,
        }


@dataclass
class DispatchDetails:
    """Instruction sent to a driver. An empty message is replaced by the standard dispatch alert."""
    kind: ClassVar[str] = Offer.Kind.DISPATCH

    message: str = ""
    dispatch_type: str = Offer.OfferType.PRIMARY
    scheduled_for: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        if self.dispatch_type not in DISPATCH_OFFER_TYPES:
            raise InvalidOfferDetailsError(f"Dispatch type '{self.dispatch_type}' is not valid for a dispatch")
        if not isinstance(self.metadata, dict):
            raise InvalidOfferDetailsError("Dispatch metadata must be an object")

    def as_payload(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "scheduled_for": self.scheduled_for.isoformat() if self.scheduled_for else None,
            "metadata": self.metadata,
        }


OfferDetails = Union[TenderDetails, DispatchDetails]


def validate_details(kind: str, details: OfferDetails) -> OfferDetails:
    """
    Check that ``details`` is the variant required by ``kind`` and is well formed.

    Raises:
        InvalidOfferDetailsError: If the variant does not match the kind or a field is invalid
    """
    if kind not in Offer.Kind.values:
        raise InvalidOfferDetailsError(f"Unknown offer kind '{kind}'")
    if not isinstance(details, (TenderDetails, DispatchDetails)) or details.kind != kind:
        raise InvalidOfferDetailsError(f"{kind} offers require {kind.lower()} details")
    details.validate()
    return details
