from rest_framework import serializers

from drivers.models import Driver


class DriverBasicSerializer(serializers.ModelSerializer):
    """
    Lite version of driver info for availability and dispatch responses.
    """
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Driver
        fields = [
            "id",
            "full_name",
            "phone_number",
            "carrier",
            "status",
            "license_expiration_date",
            "medical_certificate_expiration_date",
            "last_dispatch_at",
        ]
        read_only_fields = fields


class CurrentDispatchSerializer(serializers.Serializer):
    offer_id = serializers.IntegerField(source="id")
    state = serializers.CharField()
    shipment_id = serializers.IntegerField()
    shipment_reference = serializers.CharField(source="shipment.reference_number")
    created_at = serializers.DateTimeField()


class DriverAvailabilitySerializer(serializers.Serializer):
    """
    Eligibility verdict for a new dispatch plus whatever the driver holds now.
    """
    driver = DriverBasicSerializer()
    available = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)
    current_dispatch = CurrentDispatchSerializer(allow_null=True)
