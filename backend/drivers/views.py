from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from accounts.permissions import IsTenantMember
from drivers.serializers import DriverAvailabilitySerializer
from services.offer_workflow import OfferWorkflowError, get_driver_availability


class DriverAvailabilityView(APIView):
    """Whether a driver can take a new dispatch right now."""
    permission_classes = [IsAuthenticated, IsTenantMember]

    def get(self, request, driver_id):
        try:
            availability = get_driver_availability(request.user.tenant, driver_id)
        except OfferWorkflowError as exc:
            return Response(
                {"success": False, "error": exc.error_code, "message": str(exc)},
                status=404
            )

        return Response(DriverAvailabilitySerializer(availability).data)
