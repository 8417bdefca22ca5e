"""Custom exceptions for the offer workflow.

Each exception carries an ``error_code`` that the REST layer maps to an
HTTP status. All of them abort the enclosing transaction.
"""


class OfferWorkflowError(Exception):
    """Base class for every offer workflow failure."""
    error_code = "workflow_error"


class ShipmentNotFoundError(OfferWorkflowError):
    """Raised when a shipment cannot be found in the caller's tenant."""
    error_code = "not_found"


class InvalidShipmentStateError(ShipmentNotFoundError):
    """Raised when the shipment exists but is not in a state that permits the offer kind."""
    error_code = "invalid_shipment_state"


class ActorNotFoundError(OfferWorkflowError):
    """Raised when the target carrier or driver cannot be found in the tenant."""
    error_code = "not_found"


class OfferNotFoundError(OfferWorkflowError):
    """Raised when an offer cannot be found (or belongs to another tenant or actor)."""
    error_code = "not_found"


class OfferConflictError(OfferWorkflowError):
    """Raised when an active offer already exists for the same shipment and actor."""
    error_code = "conflict"


class ActorIneligibleError(OfferWorkflowError):
    """Raised when the target actor fails the eligibility gate."""
    error_code = "ineligible"


class InvalidOfferDetailsError(OfferWorkflowError):
    """Raised when the offer details do not match what the offer kind requires."""
    error_code = "invalid_details"


class InvalidTransitionError(OfferWorkflowError):
    """Raised when the requested state change is not allowed from the current state."""
    error_code = "invalid_transition"


class OfferExpiredError(OfferWorkflowError):
    """Raised when an accept arrives after the offer's expiry. The offer is moved to EXPIRED."""
    error_code = "expired"


class AmbiguousResponseError(OfferWorkflowError):
    """Raised when an inbound reply cannot be correlated to exactly one outstanding offer."""
    error_code = "ambiguous"

    def __init__(self, message: str, candidate_count: int = 0):
        super().__init__(message)
        self.candidate_count = candidate_count


class RollbackError(OfferWorkflowError):
    """Raised when the database rejected the unit of work and everything was rolled back."""
    error_code = "rollback"
