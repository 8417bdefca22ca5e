import logging

from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsDispatcher, IsTenantMember
from services.offer_workflow import (
    InboundPayload,
    OfferWorkflowError,
    cancel_offer,
    create_offer,
    get_offer,
    get_offer_stats,
    list_offers,
    list_shipment_offers,
    process_inbound_message,
    respond_to_offer,
)
from .models import Offer
from .serializers import (
    OfferCancelSerializer,
    OfferCreateSerializer,
    OfferDetailSerializer,
    OfferResponseSerializer,
    OfferSerializer,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    'not_found': status.HTTP_404_NOT_FOUND,
    'conflict': status.HTTP_409_CONFLICT,
    'ineligible': status.HTTP_422_UNPROCESSABLE_ENTITY,
    'invalid_shipment_state': status.HTTP_422_UNPROCESSABLE_ENTITY,
    'invalid_details': status.HTTP_400_BAD_REQUEST,
    'invalid_transition': status.HTTP_409_CONFLICT,
    'expired': status.HTTP_410_GONE,
    'rollback': status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def workflow_error_response(exc: OfferWorkflowError) -> Response:
    """Translate a workflow exception into the API error body."""
    return Response(
        {
            'success': False,
            'error': exc.error_code,
            'message': str(exc),
        },
        status=ERROR_STATUS.get(exc.error_code, status.HTTP_400_BAD_REQUEST)
    )


def result_response(result, status_code=status.HTTP_200_OK, **extra) -> Response:
    data = {
        'success': True,
        'message': result.message,
        'offer': OfferSerializer(result.offer).data,
        **extra,
    }
    if result.cancelled_count:
        data['cancelled_count'] = result.cancelled_count
    if result.degraded:
        data['degraded'] = True
        data['warnings'] = result.warnings
    return Response(data, status=status_code)


def _int_param(request, name):
    value = request.query_params.get(name)
    if value in (None, ''):
        return None
    return int(value)


# ==================== Offer APIs ====================

class OfferListCreateView(APIView):
    """
    GET  /api/offers/?shipment=&carrier=&driver=&kind=&state=
    POST /api/offers/  (dispatchers only)
    """

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated(), IsTenantMember(), IsDispatcher()]
        return [IsAuthenticated(), IsTenantMember()]

    def get(self, request):
        try:
            offers = list_offers(
                request.user.tenant,
                shipment_id=_int_param(request, 'shipment'),
                kind=request.query_params.get('kind') or None,
                carrier_id=_int_param(request, 'carrier'),
                driver_id=_int_param(request, 'driver'),
                state=request.query_params.get('state') or None,
            )
        except ValueError:
            return Response(
                {'success': False, 'error': 'invalid_filter', 'message': 'Filters must be numeric ids'},
                status=status.HTTP_400_BAD_REQUEST
            )
        return Response(OfferSerializer(offers, many=True).data)

    def post(self, request):
        serializer = OfferCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            result = create_offer(
                request.user.tenant,
                shipment_id=data['shipment_id'],
                kind=data['kind'],
                actor_id=data['actor_id'],
                details=serializer.to_details(),
                created_by=request.user,
            )
        except OfferWorkflowError as exc:
            return workflow_error_response(exc)

        offer = result.offer
        return result_response(
            result,
            status.HTTP_201_CREATED,
            offer_id=offer.id,
            state=offer.state,
            expires_at=offer.expires_at,
        )


class OfferDetailView(APIView):
    permission_classes = [IsAuthenticated, IsTenantMember]

    def get(self, request, offer_id):
        try:
            offer = get_offer(request.user.tenant, offer_id)
        except OfferWorkflowError as exc:
            return workflow_error_response(exc)
        return Response(OfferDetailSerializer(offer).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsTenantMember])
def respond_to_offer_view(request, offer_id):
    """Direct ACCEPT/REJECT of an offer on behalf of its carrier or driver"""
    serializer = OfferResponseSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        result = respond_to_offer(
            request.user.tenant,
            offer_id,
            actor_id=data['actor_id'],
            decision=data['decision'],
            responder=str(request.user.id),
            note=data['note'],
        )
    except OfferWorkflowError as exc:
        return workflow_error_response(exc)

    return result_response(result)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsTenantMember, IsDispatcher])
def cancel_offer_view(request, offer_id):
    """Dispatcher withdraws an outstanding offer"""
    serializer = OfferCancelSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = cancel_offer(
            request.user.tenant,
            offer_id,
            responder=str(request.user.id),
            reason=serializer.validated_data['reason'],
        )
    except OfferWorkflowError as exc:
        return workflow_error_response(exc)

    return result_response(result)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsTenantMember])
def offer_stats_view(request):
    """Offer counts per state and rejection rate for the tenant (?kind=TENDER|DISPATCH)"""
    kind = request.query_params.get('kind') or None
    if kind is not None and kind not in Offer.Kind.values:
        return Response(
            {'success': False, 'error': 'invalid_filter', 'message': f"Unknown offer kind '{kind}'"},
            status=status.HTTP_400_BAD_REQUEST
        )
    return Response(get_offer_stats(request.user.tenant, kind=kind))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsTenantMember])
def shipment_offers_view(request, shipment_id):
    """All offers of one shipment, newest first"""
    try:
        offers = list_shipment_offers(request.user.tenant, shipment_id)
    except OfferWorkflowError as exc:
        return workflow_error_response(exc)
    return Response(OfferSerializer(offers, many=True).data)


# ==================== SMS Webhooks ====================

def _detect_provider(request) -> str:
    if request.headers.get('X-Signalwire-Signature'):
        return 'signalwire'
    if request.headers.get('X-Twilio-Signature'):
        return 'twilio'
    return 'unknown'


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def sms_inbound_webhook(request):
    """
    Inbound SMS reply from a driver.

    Always answers 200 so that the provider does not retry; the body says
    whether the reply was applied.
    """
    payload = InboundPayload.from_request_data(request.data)
    logger.info(
        "SMS webhook from %s via %s (%s)",
        payload.from_number, _detect_provider(request), payload.provider_message_id or 'no id'
    )

    try:
        result = process_inbound_message(payload)
    except Exception:
        logger.exception("Failed to process inbound SMS from %s", payload.from_number)
        return Response(
            {'success': False, 'message': 'Failed to process webhook'},
            status=status.HTTP_200_OK
        )

    return Response(result.as_dict(), status=status.HTTP_200_OK)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def sms_delivery_webhook(request):
    """Delivery receipt for an outbound SMS. Logged only."""
    data = request.data
    logger.info(
        "SMS delivery receipt %s: %s to %s via %s",
        data.get('MessageSid') or data.get('id'),
        data.get('MessageStatus') or data.get('SmsStatus') or data.get('status'),
        data.get('To') or data.get('to'),
        _detect_provider(request),
    )
    return Response({'success': True, 'message': 'Delivery receipt processed'}, status=status.HTTP_200_OK)
