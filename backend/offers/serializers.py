from rest_framework import serializers

from services.offer_workflow import DispatchDetails, TenderDetails
from services.offer_workflow.details import DISPATCH_OFFER_TYPES, TENDER_OFFER_TYPES
from .models import Offer, OfferAuditEntry


class OfferAuditEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = OfferAuditEntry
        fields = ['action', 'timestamp', 'actor_id', 'note']
        read_only_fields = fields


class OfferSerializer(serializers.ModelSerializer):
    """Serializer for offers in lists and command responses"""
    shipment_reference = serializers.CharField(source='shipment.reference_number', read_only=True)
    actor_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Offer
        fields = ['id', 'shipment', 'shipment_reference', 'kind', 'actor_id', 'carrier', 'driver',
                  'state', 'offer_type', 'amount', 'payload', 'expires_at', 'responded_at',
                  'responded_by', 'response_note', 'created_at']
        read_only_fields = fields


class OfferDetailSerializer(OfferSerializer):
    """Offer with its full audit trail"""
    audit_trail = OfferAuditEntrySerializer(many=True, read_only=True)

    class Meta(OfferSerializer.Meta):
        fields = OfferSerializer.Meta.fields + ['audit_trail']
        read_only_fields = fields


class OfferCreateSerializer(serializers.Serializer):
    """
    Input for a new tender or dispatch.

    ``amount`` and ``expiry_hours`` apply to tenders; ``message``,
    ``dispatch_type`` and ``scheduled_for`` apply to dispatches.
    """
    shipment_id = serializers.IntegerField()
    actor_id = serializers.IntegerField()
    kind = serializers.ChoiceField(choices=Offer.Kind.choices)

    amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    expiry_hours = serializers.IntegerField(required=False, allow_null=True)
    offer_type = serializers.ChoiceField(choices=TENDER_OFFER_TYPES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)

    message = serializers.CharField(required=False, allow_blank=True)
    dispatch_type = serializers.ChoiceField(choices=DISPATCH_OFFER_TYPES, required=False)
    scheduled_for = serializers.DateTimeField(required=False, allow_null=True)
    metadata = serializers.JSONField(required=False)

    def to_details(self):
        data = self.validated_data
        if data['kind'] == Offer.Kind.TENDER:
            return TenderDetails(
                amount=data.get('amount'),
                expiry_hours=data.get('expiry_hours'),
                offer_type=data.get('offer_type', Offer.OfferType.PRIMARY),
                notes=data.get('notes', ''),
            )
        return DispatchDetails(
            message=data.get('message', ''),
            dispatch_type=data.get('dispatch_type', Offer.OfferType.PRIMARY),
            scheduled_for=data.get('scheduled_for'),
            metadata=data.get('metadata') or {},
        )


class OfferResponseSerializer(serializers.Serializer):
    """Direct ACCEPT/REJECT from the offer's carrier or driver"""
    actor_id = serializers.IntegerField()
    decision = serializers.CharField()
    note = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_decision(self, value):
        value = value.strip().upper()
        if value not in ('ACCEPT', 'REJECT'):
            raise serializers.ValidationError("Decision must be ACCEPT or REJECT")
        return value


class OfferCancelSerializer(serializers.Serializer):
    """Serializer for offer cancellation"""
    reason = serializers.CharField(required=False, allow_blank=True, default='')
