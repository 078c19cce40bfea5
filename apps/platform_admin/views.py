"""
Platform operator API views.

Read endpoints serve platform admins and platform support; write endpoints
are restricted to platform admins by PlatformAdminService.
"""
import logging

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.pagination import StandardResultsSetPagination
from apps.core.permissions import IsAuthenticatedActor, IsPlatformStaff
from apps.platform_admin.serializers import (
    DisputeDetailSerializer,
    EscalatedDisputeSerializer,
    OnboardTenantSerializer,
    PlatformServiceRequestSerializer,
    PlatformTenantSerializer,
    ReassignProviderSerializer,
    ResolveDisputeSerializer,
    SuspendTenantSerializer,
)
from apps.platform_admin.services import PlatformAdminService
from apps.rbac.serializers import AuditLogSerializer
from apps.service_requests.serializers import DisputeSerializer, ServiceRequestSerializer
from apps.workflows.transitions import ServiceRequestStatus

logger = logging.getLogger(__name__)


def _paginated(request, queryset, serializer_class):
    paginator = StandardResultsSetPagination()
    page = paginator.paginate_queryset(queryset, request)
    return paginator.get_paginated_response(serializer_class(page, many=True).data)


def _flag(value):
    return str(value).lower() in ('1', 'true', 'yes')


class PlatformServiceRequestListView(APIView):
    """
    GET /v1/platform/service-requests

    All service requests across organizations with bottleneck flags.
    """
    permission_classes = [IsAuthenticatedActor, IsPlatformStaff]

    @extend_schema(
        summary="List service requests (platform)",
        parameters=[
            OpenApiParameter(name='status', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY,
                             enum=ServiceRequestStatus.values),
            OpenApiParameter(name='hospital_id', type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='provider_id', type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='from_date', type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='to_date', type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='bottleneck', type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY,
                             description='Only requests stuck in their status past the threshold'),
        ],
        responses={200: PlatformServiceRequestSerializer(many=True)},
        tags=['Platform']
    )
    def get(self, request):
        params = request.query_params
        queryset = PlatformAdminService.list_service_requests(
            request.user,
            status=params.get('status'),
            hospital_id=params.get('hospital_id'),
            provider_id=params.get('provider_id'),
            created_from=params.get('from_date'),
            created_to=params.get('to_date'),
            bottleneck_only=_flag(params.get('bottleneck', '')),
        )
        return _paginated(request, queryset, PlatformServiceRequestSerializer)


class PlatformReassignProviderView(APIView):
    """
    POST /v1/platform/service-requests/{id}/reassign
    """
    permission_classes = [IsAuthenticatedActor, IsPlatformStaff]

    @extend_schema(
        summary="Reassign provider",
        request=ReassignProviderSerializer,
        responses={200: ServiceRequestSerializer},
        tags=['Platform']
    )
    def post(self, request, service_request_id):
        serializer = ReassignProviderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service_request = PlatformAdminService.reassign_provider(
            request.user,
            service_request_id,
            serializer.validated_data['provider_id'],
            reason=serializer.validated_data['reason'],
        )
        return Response(ServiceRequestSerializer(service_request).data)


class PlatformEscalatedDisputeListView(APIView):
    """
    GET /v1/platform/disputes/escalated - Arbitration queue, oldest first
    """
    permission_classes = [IsAuthenticatedActor, IsPlatformStaff]

    @extend_schema(
        summary="List escalated disputes",
        responses={200: EscalatedDisputeSerializer(many=True)},
        tags=['Platform']
    )
    def get(self, request):
        queryset = PlatformAdminService.list_escalated_disputes(request.user)
        return _paginated(request, queryset, EscalatedDisputeSerializer)


class PlatformDisputeDetailView(APIView):
    """
    GET /v1/platform/disputes/{id}
    """
    permission_classes = [IsAuthenticatedActor, IsPlatformStaff]

    @extend_schema(summary="Dispute detail (platform)", responses={200: DisputeDetailSerializer}, tags=['Platform'])
    def get(self, request, dispute_id):
        detail = PlatformAdminService.get_dispute_detail(request.user, dispute_id)
        return Response(DisputeDetailSerializer(detail).data)


class PlatformResolveDisputeView(APIView):
    """
    POST /v1/platform/disputes/{id}/resolve - Record the platform ruling
    """
    permission_classes = [IsAuthenticatedActor, IsPlatformStaff]

    @extend_schema(
        summary="Resolve dispute",
        request=ResolveDisputeSerializer,
        responses={
            200: DisputeSerializer,
            403: {'description': 'Forbidden - Platform admins only'},
            409: {'description': 'Conflict - Dispute cannot be resolved in its current state'}
        },
        tags=['Platform']
    )
    def post(self, request, dispute_id):
        serializer = ResolveDisputeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        dispute = PlatformAdminService.resolve_dispute(
            request.user,
            dispute_id,
            data['resolution'],
            data['reason'],
            refund_amount=data.get('refund_amount'),
        )
        return Response(DisputeSerializer(dispute).data)


class PlatformTenantListView(APIView):
    """
    GET /v1/platform/tenants - All organizations with member counts
    POST /v1/platform/tenants - Onboard an organization
    """
    permission_classes = [IsAuthenticatedActor, IsPlatformStaff]

    @extend_schema(
        summary="List organizations (platform)",
        parameters=[
            OpenApiParameter(name='kind', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY,
                             enum=['hospital', 'provider']),
            OpenApiParameter(name='status', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY,
                             enum=['trial', 'active', 'suspended']),
            OpenApiParameter(name='search', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
        ],
        responses={200: PlatformTenantSerializer(many=True)},
        tags=['Platform']
    )
    def get(self, request):
        params = request.query_params
        queryset = PlatformAdminService.list_tenants(
            request.user,
            kind=params.get('kind'),
            lifecycle_status=params.get('status'),
            search=params.get('search'),
        )
        return _paginated(request, queryset, PlatformTenantSerializer)

    @extend_schema(
        summary="Onboard organization",
        request=OnboardTenantSerializer,
        responses={201: PlatformTenantSerializer},
        tags=['Platform']
    )
    def post(self, request):
        serializer = OnboardTenantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        tenant = PlatformAdminService.onboard_tenant(
            request.user,
            data['name'],
            data['kind'],
            owner_email=data['owner_email'],
        )
        return Response(PlatformTenantSerializer(tenant).data, status=status.HTTP_201_CREATED)


class PlatformSuspendTenantView(APIView):
    """
    POST /v1/platform/tenants/{id}/suspend
    """
    permission_classes = [IsAuthenticatedActor, IsPlatformStaff]

    @extend_schema(
        summary="Suspend organization",
        request=SuspendTenantSerializer,
        responses={200: PlatformTenantSerializer},
        tags=['Platform']
    )
    def post(self, request, tenant_id):
        serializer = SuspendTenantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tenant = PlatformAdminService.suspend_tenant(
            request.user, tenant_id, reason=serializer.validated_data['reason']
        )
        return Response(PlatformTenantSerializer(tenant).data)


class PlatformReactivateTenantView(APIView):
    """
    POST /v1/platform/tenants/{id}/reactivate
    """
    permission_classes = [IsAuthenticatedActor, IsPlatformStaff]

    @extend_schema(summary="Reactivate organization", request=None, responses={200: PlatformTenantSerializer}, tags=['Platform'])
    def post(self, request, tenant_id):
        tenant = PlatformAdminService.reactivate_tenant(request.user, tenant_id)
        return Response(PlatformTenantSerializer(tenant).data)


class PlatformAuditLogView(APIView):
    """
    GET /v1/platform/audit-log - Audit trail across organizations
    """
    permission_classes = [IsAuthenticatedActor, IsPlatformStaff]

    @extend_schema(
        summary="Audit log (platform)",
        parameters=[
            OpenApiParameter(name='tenant_id', type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='user_id', type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='action', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='resource_type', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='resource_id', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='from_date', type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='to_date', type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='search', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
        ],
        responses={200: AuditLogSerializer(many=True)},
        tags=['Platform']
    )
    def get(self, request):
        params = request.query_params
        queryset = PlatformAdminService.list_audit_log(
            request.user,
            tenant_id=params.get('tenant_id'),
            actor_id=params.get('user_id'),
            action=params.get('action'),
            resource_type=params.get('resource_type'),
            resource_id=params.get('resource_id'),
            date_from=params.get('from_date'),
            date_to=params.get('to_date'),
            search=params.get('search'),
        )
        return _paginated(request, queryset, AuditLogSerializer)
