"""
Offer workflow service - Tender and dispatch offer lifecycle.

This module handles:
    - Creating tenders (to carriers) and dispatches (to drivers)
    - Accepting/rejecting/cancelling/expiring offers
    - Cascading cancellation of competing tenders
    - Resolving inbound SMS replies from drivers
"""

from .lifecycle import (
    create_offer,
    transition,
    respond_to_offer,
    cancel_offer,
    get_offer,
    list_offers,
    list_shipment_offers,
    get_driver_availability,
    get_offer_stats,
)
from .cascade import resolve_siblings
from .coordinator import OfferCoordinator, WorkflowResult, coordinator
from .details import DispatchDetails, TenderDetails
from .eligibility import Eligibility, check_eligible
from .events import OfferEvent, offer_event
from .expiry import expire_overdue_offers
from .inbound import (
    InboundPayload,
    InboundResult,
    classify_intent,
    process_inbound_message,
    resolve,
)

from .exceptions import (
    OfferWorkflowError,
    ShipmentNotFoundError,
    InvalidShipmentStateError,
    ActorNotFoundError,
    OfferNotFoundError,
    OfferConflictError,
    ActorIneligibleError,
    InvalidOfferDetailsError,
    InvalidTransitionError,
    OfferExpiredError,
    AmbiguousResponseError,
    RollbackError,
)

__all__ = [
    # Lifecycle operations
    "create_offer",
    "transition",
    "respond_to_offer",
    "cancel_offer",
    "get_offer",
    "list_offers",
    "list_shipment_offers",
    "get_driver_availability",
    "get_offer_stats",
    "resolve_siblings",
    "expire_overdue_offers",
    # Inbound SMS
    "InboundPayload",
    "InboundResult",
    "classify_intent",
    "process_inbound_message",
    "resolve",
    # Coordinator, events and values
    "OfferCoordinator",
    "WorkflowResult",
    "coordinator",
    "OfferEvent",
    "offer_event",
    "Eligibility",
    "check_eligible",
    "TenderDetails",
    "DispatchDetails",
    # Exceptions
    "OfferWorkflowError",
    "ShipmentNotFoundError",
    "InvalidShipmentStateError",
    "ActorNotFoundError",
    "OfferNotFoundError",
    "OfferConflictError",
    "ActorIneligibleError",
    "InvalidOfferDetailsError",
    "InvalidTransitionError",
    "OfferExpiredError",
    "AmbiguousResponseError",
    "RollbackError",
]
