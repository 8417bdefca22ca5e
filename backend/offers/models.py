from django.conf import settings
from django.db import models
from django.utils import timezone


class Offer(models.Model):
    """
    A proposal of work extended to one external actor for one shipment.

    TENDER offers go to a carrier and carry a monetary ``amount``; DISPATCH
    offers go to a driver and carry a ``payload`` with the dispatch message.
    ``state`` is only ever changed through services.offer_workflow.
    """

    class Kind(models.TextChoices):
        TENDER = 'TENDER', 'Tender to carrier'
        DISPATCH = 'DISPATCH', 'Dispatch to driver'

    class State(models.TextChoices):
        OFFERED = 'OFFERED', 'Offered'
        ACCEPTED = 'ACCEPTED', 'Accepted'
        REJECTED = 'REJECTED', 'Rejected'
        EXPIRED = 'EXPIRED', 'Expired'
        CANCELLED = 'CANCELLED', 'Cancelled'

    class OfferType(models.TextChoices):
        PRIMARY = 'PRIMARY', 'Primary'
        BACKUP = 'BACKUP', 'Backup'
        SPOT = 'SPOT', 'Spot'
        EMERGENCY = 'EMERGENCY', 'Emergency'

    TERMINAL_STATES = frozenset({
        State.ACCEPTED,
        State.REJECTED,
        State.EXPIRED,
        State.CANCELLED,
    })

    tenant = models.ForeignKey(
        'accounts.Tenant',
        on_delete=models.PROTECT,
        related_name='offers'
    )
    shipment = models.ForeignKey(
        'shipments.Shipment',
        on_delete=models.PROTECT,
        related_name='offers'
    )
    kind = models.CharField(max_length=10, choices=Kind.choices)

    # Exactly one actor is set, matching the kind
    carrier = models.ForeignKey(
        'carriers.Carrier',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='offers'
    )
    driver = models.ForeignKey(
        'drivers.Driver',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='offers'
    )

    state = models.CharField(max_length=10, choices=State.choices, default=State.OFFERED)
    offer_type = models.CharField(max_length=10, choices=OfferType.choices, default=OfferType.PRIMARY)

    amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    payload = models.JSONField(default=dict, blank=True)

    expires_at = models.DateTimeField(null=True, blank=True)
    responded_at = models.DateTimeField(null=True, blank=True)
    responded_by = models.CharField(max_length=100, blank=True)
    response_note = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_offers'
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'offers'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['tenant', 'state'], name='offer_tenant_state_idx'),
            models.Index(fields=['shipment', 'kind', 'state'], name='offer_shipment_kind_state_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['shipment', 'carrier'],
                condition=models.Q(kind='TENDER', state='OFFERED'),
                name='unique_active_tender_per_carrier'
            ),
            models.UniqueConstraint(
                fields=['shipment', 'driver'],
                condition=models.Q(kind='DISPATCH', state__in=['OFFERED', 'ACCEPTED']),
                name='unique_active_dispatch_per_driver'
            ),
        ]

    def __str__(self):
        return f"Offer #{self.id} {self.kind} - Shipment {self.shipment_id} -> {self.actor} ({self.state})"

    @property
    def actor(self):
        return self.carrier if self.kind == self.Kind.TENDER else self.driver

    @property
    def actor_id(self):
        return self.carrier_id if self.kind == self.Kind.TENDER else self.driver_id

    @property
    def is_terminal(self) -> bool:
        return self.state in self.TERMINAL_STATES

    def is_past_expiry(self, now=None) -> bool:
        if self.expires_at is None:
            return False
        return (now or timezone.now()) >= self.expires_at


class AuditTrailImmutableError(Exception):
    """Raised on any attempt to edit or remove an offer audit entry."""
    pass


class AppendOnlyQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise AuditTrailImmutableError("Offer audit entries cannot be updated")

    def delete(self):
        raise AuditTrailImmutableError("Offer audit entries cannot be deleted")


class OfferAuditEntry(models.Model):
    """One row per offer transition, including automatic ones. Append-only."""

    offer = models.ForeignKey(
        Offer,
        on_delete=models.PROTECT,
        related_name='audit_trail'
    )
    action = models.CharField(max_length=20)
    timestamp = models.DateTimeField(default=timezone.now)
    actor_id = models.CharField(max_length=100, blank=True)
    note = models.TextField(blank=True)

    objects = AppendOnlyQuerySet.as_manager()

    class Meta:
        db_table = 'offer_audit_entries'
        ordering = ['timestamp', 'id']
        verbose_name_plural = 'offer audit entries'

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise AuditTrailImmutableError("Offer audit entries cannot be updated")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise AuditTrailImmutableError("Offer audit entries cannot be deleted")

    def __str__(self):
        return f"{self.action} on offer #{self.offer_id} at {self.timestamp:%Y-%m-%d %H:%M}"


class InboundMessage(models.Model):
    """
    Raw inbound SMS reply and how it was resolved.

    Rows with outcome NEEDS_REVIEW or UNRECOGNIZED make up the manual-review queue.
    """

    class Intent(models.TextChoices):
        ACCEPT = 'ACCEPT', 'Accept'
        REJECT = 'REJECT', 'Reject'
        UNRECOGNIZED = 'UNRECOGNIZED', 'Unrecognized'

    class Outcome(models.TextChoices):
        APPLIED = 'APPLIED', 'Applied'
        DUPLICATE = 'DUPLICATE', 'Duplicate (no-op)'
        UNRECOGNIZED = 'UNRECOGNIZED', 'Unrecognized'
        NEEDS_REVIEW = 'NEEDS_REVIEW', 'Needs manual review'
        FAILED = 'FAILED', 'Failed'

    REVIEW_OUTCOMES = (Outcome.NEEDS_REVIEW, Outcome.UNRECOGNIZED)

    provider_message_id = models.CharField(max_length=100, blank=True, db_index=True)
    from_number = models.CharField(max_length=20)
    to_number = models.CharField(max_length=20, blank=True)
    body = models.TextField(blank=True)

    intent = models.CharField(max_length=15, choices=Intent.choices)
    outcome = models.CharField(max_length=15, choices=Outcome.choices)
    detail = models.TextField(blank=True)

    offer = models.ForeignKey(
        Offer,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='inbound_messages'
    )
    driver = models.ForeignKey(
        'drivers.Driver',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='inbound_messages'
    )

    received_at = models.DateTimeField(default=timezone.now)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_inbound_messages'
    )

    class Meta:
        db_table = 'inbound_messages'
        ordering = ['-received_at', '-id']
        indexes = [
            models.Index(fields=['from_number', 'received_at'], name='inbound_from_received_idx'),
        ]

    def __str__(self):
        return f"Inbound from {self.from_number}: {self.intent} ({self.outcome})"
