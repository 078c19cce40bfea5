"""
Service request, dispute and payment API views.
"""
import logging

from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.pagination import StandardResultsSetPagination
from apps.core.permissions import HasActiveTenant, IsAuthenticatedActor
from apps.core.rate_limiting import SERVICE_REQUEST_CREATE_RATE, organization_key
from apps.service_requests.serializers import (
    CancelSerializer,
    DisputeCreateSerializer,
    DisputeSerializer,
    EscalateSerializer,
    PaymentCreateSerializer,
    PaymentSerializer,
    ServiceRequestCreateSerializer,
    ServiceRequestSerializer,
)
from apps.service_requests.services import DisputeService, PaymentService, ServiceRequestService
from apps.workflows.serializers import StatusChangeSerializer, StatusHistorySerializer

logger = logging.getLogger(__name__)

STATUS_PARAMETER = OpenApiParameter(
    name='status',
    type=OpenApiTypes.STR,
    location=OpenApiParameter.QUERY,
    description='Filter by status'
)


def _paginated(request, queryset, serializer_class):
    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(queryset, request)
    return paginator.get_paginated_response(serializer_class(page, many=True).data)


class ServiceRequestListView(APIView):
    """
    GET /v1/service-requests - Requests visible to the active organization
    POST /v1/service-requests - Raise a request (hospital organizations)
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(
        summary="List service requests",
        parameters=[
            STATUS_PARAMETER,
            OpenApiParameter(name='priority', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
        ],
        responses={200: ServiceRequestSerializer(many=True)}
    )
    def get(self, request):
        queryset = ServiceRequestService.list_service_requests(
            request.user,
            status=request.query_params.get('status'),
            priority=request.query_params.get('priority'),
        )
        return _paginated(request, queryset, ServiceRequestSerializer)

    @extend_schema(
        summary="Create service request",
        request=ServiceRequestCreateSerializer,
        responses={201: ServiceRequestSerializer}
    )
    @method_decorator(ratelimit(key=organization_key, rate=SERVICE_REQUEST_CREATE_RATE, method='POST'))
    def post(self, request):
        serializer = ServiceRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service_request = ServiceRequestService.create_service_request(request.user, serializer.validated_data)
        return Response(ServiceRequestSerializer(service_request).data, status=status.HTTP_201_CREATED)


class ServiceRequestDetailView(APIView):
    """
    GET /v1/service-requests/{id}
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(summary="Get service request", responses={200: ServiceRequestSerializer})
    def get(self, request, service_request_id):
        service_request = ServiceRequestService.get_service_request(request.user, service_request_id)
        return Response(ServiceRequestSerializer(service_request).data)


class ServiceRequestStatusView(APIView):
    """
    POST /v1/service-requests/{id}/status

    The hospital side may accept, cancel or dispute; the assigned provider
    may quote, start and complete.
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(
        summary="Change service request status",
        request=StatusChangeSerializer,
        responses={
            200: ServiceRequestSerializer,
            403: {'description': 'Forbidden - Transition not permitted for this side'},
            409: {'description': 'Conflict - Invalid status transition'}
        }
    )
    def post(self, request, service_request_id):
        serializer = StatusChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service_request = ServiceRequestService.change_status(
            request.user,
            service_request_id,
            serializer.validated_data['status'],
            notes=serializer.validated_data['notes'],
        )
        return Response(ServiceRequestSerializer(service_request).data)


class ServiceRequestCancelView(APIView):
    """
    POST /v1/service-requests/{id}/cancel
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(summary="Cancel service request", request=CancelSerializer, responses={200: ServiceRequestSerializer})
    def post(self, request, service_request_id):
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service_request = ServiceRequestService.cancel(
            request.user, service_request_id, reason=serializer.validated_data['reason']
        )
        return Response(ServiceRequestSerializer(service_request).data)


class ServiceRequestHistoryView(APIView):
    """
    GET /v1/service-requests/{id}/history
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(summary="Service request status history", responses={200: StatusHistorySerializer(many=True)})
    def get(self, request, service_request_id):
        history = ServiceRequestService.history(request.user, service_request_id)
        return Response(StatusHistorySerializer(history, many=True).data)


class DisputeListView(APIView):
    """
    GET /v1/disputes
    POST /v1/disputes - Raise a dispute (requesting hospital)
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(summary="List disputes", parameters=[STATUS_PARAMETER], responses={200: DisputeSerializer(many=True)})
    def get(self, request):
        queryset = DisputeService.list_disputes(request.user, status=request.query_params.get('status'))
        return _paginated(request, queryset, DisputeSerializer)

    @extend_schema(summary="Raise dispute", request=DisputeCreateSerializer, responses={201: DisputeSerializer})
    def post(self, request):
        serializer = DisputeCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dispute = DisputeService.create_dispute(
            request.user,
            serializer.validated_data['service_request_id'],
            serializer.validated_data['dispute_type'],
            serializer.validated_data['description'],
        )
        return Response(DisputeSerializer(dispute).data, status=status.HTTP_201_CREATED)


class DisputeDetailView(APIView):
    """
    GET /v1/disputes/{id}
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(summary="Get dispute", responses={200: DisputeSerializer})
    def get(self, request, dispute_id):
        dispute = DisputeService.get_dispute(request.user, dispute_id)
        return Response(DisputeSerializer(dispute).data)


class DisputeStatusView(APIView):
    """
    POST /v1/disputes/{id}/status
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(summary="Change dispute status", request=StatusChangeSerializer, responses={200: DisputeSerializer})
    def post(self, request, dispute_id):
        serializer = StatusChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dispute = DisputeService.change_status(
            request.user,
            dispute_id,
            serializer.validated_data['status'],
            notes=serializer.validated_data['notes'],
        )
        return Response(DisputeSerializer(dispute).data)


class DisputeEscalateView(APIView):
    """
    POST /v1/disputes/{id}/escalate - Hand the dispute to platform arbitration
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(summary="Escalate dispute", request=EscalateSerializer, responses={200: DisputeSerializer})
    def post(self, request, dispute_id):
        serializer = EscalateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dispute = DisputeService.escalate(request.user, dispute_id, reason=serializer.validated_data['reason'])
        return Response(DisputeSerializer(dispute).data)


class PaymentListView(APIView):
    """
    GET /v1/payments
    POST /v1/payments - Record a pending payment (owner or admin)
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(summary="List payments", parameters=[STATUS_PARAMETER], responses={200: PaymentSerializer(many=True)})
    def get(self, request):
        queryset = PaymentService.list_payments(request.user, status=request.query_params.get('status'))
        return _paginated(request, queryset, PaymentSerializer)

    @extend_schema(summary="Record payment", request=PaymentCreateSerializer, responses={201: PaymentSerializer})
    def post(self, request):
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        payment = PaymentService.create_payment(
            request.user,
            data['amount'],
            currency=data['currency'],
            service_request_id=data.get('service_request_id'),
            reference=data['reference'],
        )
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


class PaymentStatusView(APIView):
    """
    POST /v1/payments/{id}/status
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(summary="Change payment status", request=StatusChangeSerializer, responses={200: PaymentSerializer})
    def post(self, request, payment_id):
        serializer = StatusChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = PaymentService.change_status(
            request.user,
            payment_id,
            serializer.validated_data['status'],
            notes=serializer.validated_data['notes'],
        )
        return Response(PaymentSerializer(payment).data)
