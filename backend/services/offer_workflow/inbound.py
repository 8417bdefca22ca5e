"""
Inbound SMS response resolution.

Drivers answer dispatch offers by text. The SMS provider delivers each reply
at least once, possibly more than once, with no reference to the offer. This
module classifies the reply, correlates it to exactly one outstanding
DISPATCH offer through the sender's phone number, and applies it through the
same ``transition`` used by the REST API. Every inbound message is stored as
an ``InboundMessage`` so that operators can review the ones that could not be
applied.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from common.utils import normalize_phone_number
from drivers.models import Driver
from offers.models import InboundMessage, Offer
from .coordinator import WorkflowResult, coordinator
from .exceptions import (
    AmbiguousResponseError,
    InvalidTransitionError,
    OfferWorkflowError,
    RollbackError,
)
from .messages import ACCEPT_REPLY, REJECT_REPLY

logger = logging.getLogger(__name__)

ACCEPT_PATTERNS = [
    re.compile(r"\bconfirm(s|ed)?\b"),
    re.compile(r"\baccept(s|ed)?\b"),
    re.compile(r"\byes\b"),
    re.compile(r"\b(ok|okay)\b"),
    re.compile(r"\bgot it\b"),
    re.compile(r"\bon my way\b"),
]

REJECT_PATTERNS = [
    re.compile(r"\breject(s|ed)?\b"),
    re.compile(r"\bdecline(s|d)?\b"),
    re.compile(r"\bno\b"),
    re.compile(r"\bcan'?t\b"),
    re.compile(r"\bcannot\b"),
    re.compile(r"\bbusy\b"),
    re.compile(r"\bnot available\b"),
]

DECISION_FOR_INTENT = {
    InboundMessage.Intent.ACCEPT: "ACCEPT",
    InboundMessage.Intent.REJECT: "REJECT",
}


@dataclass
class InboundPayload:
    """Raw provider payload of one inbound SMS."""
    from_number: str
    body: str
    to_number: str = ""
    provider_message_id: str = ""

    @classmethod
    def from_request_data(cls, data: Mapping[str, Any]) -> "InboundPayload":
        """Accept both provider-style (From/Body/MessageSid) and lowercase keys."""
        def pick(*keys):
            for key in keys:
                value = data.get(key)
                if value:
                    return str(value)
            return ""

        return cls(
            from_number=pick("From", "from"),
            to_number=pick("To", "to"),
            body=pick("Body", "body", "text"),
            provider_message_id=pick("MessageSid", "SmsSid", "message_sid", "id"),
        )


@dataclass
class InboundResponse:
    """A classified and correlated inbound reply."""
    payload: InboundPayload
    phone_number: str
    intent: str
    offer: Optional[Offer] = None
    driver: Optional[Driver] = None

    @property
    def resolved_offer_id(self) -> Optional[int]:
        return self.offer.id if self.offer else None

    @property
    def resolved_actor_id(self) -> Optional[int]:
        return self.driver.id if self.driver else None


@dataclass
class InboundResult:
    """What the webhook reports back to the provider."""
    success: bool
    message: str
    outcome: str
    matched_offer_id: Optional[int] = None
    applied_decision: Optional[str] = None
    degraded: bool = False
    warnings: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        data = {
            "success": self.success,
            "message": self.message,
            "outcome": self.outcome,
            "matched_offer_id": self.matched_offer_id,
            "applied_decision": self.applied_decision,
        }
        if self.degraded:
            data["degraded"] = True
            data["warnings"] = self.warnings
        return data


def _normalize_body(body: str) -> str:
    return " ".join(body.replace("’", "'").lower().split())


def classify_intent(body: str) -> str:
    """
    Map free text to ACCEPT, REJECT or UNRECOGNIZED.

    An exact "1" or "2" wins, then accept keywords, then reject keywords.
    """
    text = _normalize_body(body or "")
    if text == ACCEPT_REPLY:
        return InboundMessage.Intent.ACCEPT
    if text == REJECT_REPLY:
        return InboundMessage.Intent.REJECT
    if any(pattern.search(text) for pattern in ACCEPT_PATTERNS):
        return InboundMessage.Intent.ACCEPT
    if any(pattern.search(text) for pattern in REJECT_PATTERNS):
        return InboundMessage.Intent.REJECT
    return InboundMessage.Intent.UNRECOGNIZED


def correlate(phone_number: str) -> Offer:
    """
    Find the single OFFERED dispatch addressed to the driver(s) on ``phone_number``.

    Driver eligibility is not re-checked: a dispatch stays answerable after
    its driver is deactivated, as it does through the REST API.

    Raises:
        AmbiguousResponseError: If zero or several offers match
    """
    if not phone_number:
        raise AmbiguousResponseError("Inbound message has no sender number", candidate_count=0)

    drivers = Driver.objects.filter(phone_number=phone_number)
    candidates = list(
        Offer.objects.filter(
            kind=Offer.Kind.DISPATCH,
            state=Offer.State.OFFERED,
            driver__in=drivers,
        ).select_related("driver", "tenant")
    )
    if len(candidates) != 1:
        raise AmbiguousResponseError(
            f"{len(candidates)} outstanding dispatch offers match {phone_number or 'an unknown number'}",
            candidate_count=len(candidates),
        )
    return candidates[0]


def resolve(payload: InboundPayload) -> InboundResponse:
    """
    Classify and correlate an inbound reply without changing any offer.

    Raises:
        AmbiguousResponseError: If a recognized reply matches zero or several offers
    """
    phone_number = normalize_phone_number(payload.from_number)
    intent = classify_intent(payload.body)
    response = InboundResponse(payload=payload, phone_number=phone_number, intent=intent)
    if intent == InboundMessage.Intent.UNRECOGNIZED:
        return response

    offer = correlate(phone_number)
    response.offer = offer
    response.driver = offer.driver
    return response


def _record(payload: InboundPayload, phone_number: str, intent: str, outcome: str,
            detail: str = "", offer: Optional[Offer] = None,
            driver: Optional[Driver] = None) -> InboundMessage:
    return InboundMessage.objects.create(
        provider_message_id=payload.provider_message_id,
        from_number=phone_number or payload.from_number,
        to_number=normalize_phone_number(payload.to_number),
        body=payload.body,
        intent=intent,
        outcome=outcome,
        detail=detail,
        offer=offer,
        driver=driver,
    )


def _previously_processed(payload: InboundPayload) -> Optional[InboundMessage]:
    if not payload.provider_message_id:
        return None
    return (
        InboundMessage.objects.filter(
            provider_message_id=payload.provider_message_id,
            outcome__in=[InboundMessage.Outcome.APPLIED, InboundMessage.Outcome.DUPLICATE],
        )
        .order_by("received_at", "id")
        .first()
    )


def _recent_redelivery(phone_number: str, body: str) -> Optional[InboundMessage]:
    window = timedelta(seconds=settings.INBOUND_REDELIVERY_WINDOW_SECONDS)
    recent = InboundMessage.objects.filter(
        from_number=phone_number,
        outcome=InboundMessage.Outcome.APPLIED,
        received_at__gte=timezone.now() - window,
    ).order_by("-received_at", "-id")
    wanted = _normalize_body(body)
    for message in recent:
        if _normalize_body(message.body) == wanted:
            return message
    return None


def process_inbound_message(payload: InboundPayload) -> InboundResult:
    """
    Resolve and apply one inbound SMS.

    The duplicate checks, the offer transition and the ``InboundMessage``
    record share one transaction, so an applied reply is never left without
    its record. Workflow errors are reported in the result, not raised.

    Returns:
        InboundResult; ``success`` is True for applied replies and for
        no-op redeliveries

    Raises:
        RollbackError: If the database rejected the transaction (nothing is kept)
    """
    phone_number = normalize_phone_number(payload.from_number)
    logger.info("Inbound SMS from %s (%s)", phone_number or "unknown", payload.provider_message_id or "no id")

    try:
        with coordinator.batch():
            result, applied = _process(payload, phone_number)
    except DatabaseError as exc:
        logger.exception("Inbound SMS from %s rolled back", phone_number or "unknown")
        raise RollbackError(f"Inbound message could not be recorded: {exc}") from exc

    # Notification outcome is only known once the batch has published its events
    if applied is not None and applied.degraded:
        result.degraded = True
        result.warnings = list(applied.warnings)
    return result


def _process(payload: InboundPayload, phone_number: str) -> Tuple[InboundResult, Optional[WorkflowResult]]:
    from .lifecycle import transition

    prior = _previously_processed(payload)
    if prior is not None:
        _record(payload, phone_number, prior.intent, InboundMessage.Outcome.DUPLICATE,
                f"Provider message already processed as #{prior.id}", prior.offer, prior.driver)
        return InboundResult(
            success=True,
            message="Message already processed",
            outcome=InboundMessage.Outcome.DUPLICATE,
            matched_offer_id=prior.offer_id,
            applied_decision=DECISION_FOR_INTENT.get(prior.intent),
        ), None

    try:
        response = resolve(payload)
    except AmbiguousResponseError as exc:
        intent = classify_intent(payload.body)
        redelivered = _recent_redelivery(phone_number, payload.body) if exc.candidate_count == 0 else None
        if redelivered is not None:
            _record(payload, phone_number, intent, InboundMessage.Outcome.DUPLICATE,
                    f"Redelivery of message #{redelivered.id}", redelivered.offer, redelivered.driver)
            return InboundResult(
                success=True,
                message="Message already processed",
                outcome=InboundMessage.Outcome.DUPLICATE,
                matched_offer_id=redelivered.offer_id,
                applied_decision=DECISION_FOR_INTENT.get(intent),
            ), None
        logger.warning("Inbound SMS from %s needs review: %s", phone_number, exc)
        _record(payload, phone_number, intent, InboundMessage.Outcome.NEEDS_REVIEW, str(exc))
        return InboundResult(
            success=False,
            message="Could not match reply to a single dispatch; queued for review",
            outcome=InboundMessage.Outcome.NEEDS_REVIEW,
        ), None

    if response.intent == InboundMessage.Intent.UNRECOGNIZED:
        logger.warning("Unrecognized SMS reply from %s: %r", phone_number, payload.body)
        _record(payload, phone_number, response.intent, InboundMessage.Outcome.UNRECOGNIZED,
                "Reply did not match any accept or reject keyword")
        return InboundResult(
            success=False,
            message="Unrecognized SMS response",
            outcome=InboundMessage.Outcome.UNRECOGNIZED,
        ), None

    decision = DECISION_FOR_INTENT[response.intent]
    target = Offer.State.ACCEPTED if decision == "ACCEPT" else Offer.State.REJECTED
    offer, driver = response.offer, response.driver

    try:
        applied = transition(
            offer.id,
            target,
            responder=f"sms:{phone_number}",
            note=f"SMS reply: {payload.body.strip()}",
            tenant=offer.tenant,
            actor_id=driver.id,
        )
    except InvalidTransitionError as exc:
        # Lost a race with another delivery of the same reply
        _record(payload, phone_number, response.intent, InboundMessage.Outcome.DUPLICATE,
                str(exc), offer, driver)
        return InboundResult(
            success=True,
            message="Offer already resolved",
            outcome=InboundMessage.Outcome.DUPLICATE,
            matched_offer_id=offer.id,
        ), None
    except OfferWorkflowError as exc:
        logger.warning("Could not apply SMS reply from %s to offer %s: %s", phone_number, offer.id, exc)
        _record(payload, phone_number, response.intent, InboundMessage.Outcome.FAILED,
                str(exc), offer, driver)
        return InboundResult(
            success=False,
            message=str(exc),
            outcome=InboundMessage.Outcome.FAILED,
            matched_offer_id=offer.id,
        ), None

    _record(payload, phone_number, response.intent, InboundMessage.Outcome.APPLIED,
            applied.message, offer, driver)
    return InboundResult(
        success=True,
        message="Dispatch confirmed" if decision == "ACCEPT" else "Dispatch rejected",
        outcome=InboundMessage.Outcome.APPLIED,
        matched_offer_id=offer.id,
        applied_decision=decision,
    ), applied
