"""
Transactional coordinator for the offer workflow.

Every state-changing operation runs as one unit of work: the offer row, the
shipment row, sibling cancellations and the audit entries are written inside a
single database transaction. Domain events are collected while the work runs
and are only published once the transaction has committed, so a notification
can never describe a change that was rolled back.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from django.db import DatabaseError, transaction
from django.utils import timezone

from drivers.models import Driver
from offers.models import Offer, OfferAuditEntry
from shipments.models import Shipment
from . import state_machine
from .events import EVENT_FOR_STATE, OfferEvent, offer_event
from .exceptions import OfferWorkflowError, RollbackError

logger = logging.getLogger(__name__)


@dataclass
class WorkflowResult:
    """Result object for offer workflow operations."""
    success: bool
    offer: Optional[Offer] = None
    message: str = ""
    error_code: Optional[str] = None
    cancelled_count: int = 0
    degraded: bool = False
    warnings: List[str] = field(default_factory=list)
    extra: Optional[Dict[str, Any]] = None


def apply_shipment_update(shipment: Shipment, **fields) -> Shipment:
    """Write ``fields`` to a locked shipment row."""
    for name, value in fields.items():
        setattr(shipment, name, value)
    shipment.save(update_fields=[*fields.keys(), "updated_at"])
    return shipment


def record_audit(offer: Offer, action: str, actor_id: str, note: str = "",
                 timestamp: Optional[datetime] = None) -> OfferAuditEntry:
    return OfferAuditEntry.objects.create(
        offer=offer,
        action=action,
        actor_id=str(actor_id or ""),
        note=note or "",
        timestamp=timestamp or timezone.now(),
    )


class UnitOfWork:
    """Collects the writes and pending events of one coordinator commit."""

    def __init__(self):
        self.events: List[OfferEvent] = []

    def emit(self, name: str, offer: Offer, note: str = "") -> None:
        self.events.append(OfferEvent.from_offer(name, offer, note))

    def record(self, offer: Offer, action: str, actor_id: str, note: str = "",
               timestamp: Optional[datetime] = None) -> OfferAuditEntry:
        return record_audit(offer, action, actor_id, note, timestamp)

    def transition(self, offer: Offer, target: str, responder: str, note: str = "",
                   now: Optional[datetime] = None) -> Offer:
        """Move a locked offer to ``target``, append its audit entry and queue its event."""
        state_machine.validate_transition(offer, target)
        now = now or timezone.now()

        offer.state = target
        offer.responded_at = now
        offer.responded_by = str(responder)
        offer.response_note = note or ""
        offer.save(update_fields=["state", "responded_at", "responded_by", "response_note", "updated_at"])

        self.record(offer, target, responder, note, now)
        self.emit(EVENT_FOR_STATE[target], offer, note)
        return offer

    def update_shipment(self, shipment: Shipment, **fields) -> Shipment:
        return apply_shipment_update(shipment, **fields)

    def update_driver(self, driver: Driver, **fields) -> Driver:
        for name, value in fields.items():
            setattr(driver, name, value)
        driver.save(update_fields=[*fields.keys(), "updated_at"])
        return driver


class OfferCoordinator:
    """Runs units of work atomically and publishes their events after commit."""

    def __init__(self):
        self._local = threading.local()

    @contextmanager
    def batch(self):
        """
        Group several commits into one outer transaction.

        Commits made inside the block become savepoints. Their events are held
        back and published, in order, only after the outer transaction commits;
        nothing is published when it rolls back. Nested batches join the
        outermost one.
        """
        if getattr(self._local, "pending", None) is not None:
            yield
            return

        self._local.pending = []
        try:
            with transaction.atomic():
                yield
            pending = self._local.pending
        finally:
            self._local.pending = None

        for events, result in pending:
            self.publish(events, result)

    def commit(self, work: Callable[[UnitOfWork], WorkflowResult]) -> WorkflowResult:
        """
        Execute ``work`` inside one transaction.

        Args:
            work: Callable receiving the UnitOfWork and returning a WorkflowResult

        Returns:
            The WorkflowResult from ``work``, flagged ``degraded`` when any
            event receiver failed after the commit

        Raises:
            OfferWorkflowError: Whatever domain error ``work`` raised (nothing is persisted)
            RollbackError: If the database rejected the transaction
        """
        unit = UnitOfWork()
        try:
            with transaction.atomic():
                result = work(unit)
        except OfferWorkflowError:
            raise
        except DatabaseError as exc:
            logger.exception("Offer workflow transaction rolled back")
            raise RollbackError(f"Transaction rolled back: {exc}") from exc

        pending = getattr(self._local, "pending", None)
        if pending is not None:
            pending.append((unit.events, result))
        else:
            self.publish(unit.events, result)
        return result

    def publish(self, events: List[OfferEvent], result: WorkflowResult) -> None:
        for event in events:
            responses = offer_event.send_robust(sender=Offer, event=event)
            for receiver, response in responses:
                if isinstance(response, Exception):
                    logger.error(
                        "Receiver %s failed for %s on offer %s",
                        getattr(receiver, "__qualname__", receiver), event.name, event.offer_id,
                        exc_info=response,
                    )
                    result.degraded = True
                    result.warnings.append(
                        f"{event.name} notification for offer {event.offer_id} failed: {response}"
                    )


coordinator = OfferCoordinator()
