"""Tells what to show in the Django admin interface for offers app"""

from django.contrib import admin
from django.utils import timezone

from .models import InboundMessage, Offer, OfferAuditEntry


class OfferAuditEntryInline(admin.TabularInline):
    model = OfferAuditEntry
    fields = ('action', 'timestamp', 'actor_id', 'note')
    readonly_fields = fields
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Offer)
class OfferAdmin(admin.ModelAdmin):
    """Offers are read-only here; state only changes through the offer workflow."""
    list_display = ['id', 'kind', 'shipment', 'carrier', 'driver', 'state', 'amount', 'expires_at', 'created_at']
    list_filter = ['kind', 'state', 'offer_type', 'tenant']
    search_fields = ['shipment__reference_number', 'carrier__name', 'driver__phone_number']
    readonly_fields = [field.name for field in Offer._meta.fields]
    date_hierarchy = 'created_at'
    inlines = [OfferAuditEntryInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(InboundMessage)
class InboundMessageAdmin(admin.ModelAdmin):
    """Inbound SMS log; NEEDS_REVIEW and UNRECOGNIZED rows are the manual review queue."""
    list_display = ("received_at", "from_number", "body", "intent", "outcome", "offer", "reviewed_at")
    list_filter = ("outcome", "intent")
    search_fields = ("from_number", "body", "provider_message_id")
    readonly_fields = (
        "provider_message_id", "from_number", "to_number", "body", "intent", "outcome",
        "detail", "offer", "driver", "received_at", "reviewed_at", "reviewed_by",
    )
    actions = ["mark_reviewed"]

    @admin.action(description="Mark selected messages as reviewed")
    def mark_reviewed(self, request, queryset):
        updated = queryset.filter(
            outcome__in=InboundMessage.REVIEW_OUTCOMES,
            reviewed_at__isnull=True,
        ).update(reviewed_at=timezone.now(), reviewed_by=request.user)
        self.message_user(request, f"{updated} message(s) marked as reviewed.")
