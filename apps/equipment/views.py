"""
Equipment API views.
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
from apps.core.rate_limiting import EQUIPMENT_CREATE_RATE, organization_key
from apps.equipment.serializers import (
    EquipmentCreateSerializer,
    EquipmentSerializer,
    FailureReportCreateSerializer,
    FailureReportSerializer,
)
from apps.equipment.services import EquipmentService
from apps.workflows.serializers import StatusChangeSerializer, StatusHistorySerializer

logger = logging.getLogger(__name__)


class EquipmentListView(APIView):
    """
    List and register equipment.

    GET /v1/equipment - List equipment of the active organization
    POST /v1/equipment - Register equipment (owner or admin)
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(
        summary="List equipment",
        parameters=[
            OpenApiParameter(name='status', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY,
                             description='Filter by equipment status'),
            OpenApiParameter(name='category', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='search', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY,
                             description='Search name, serial number or location'),
        ],
        responses={200: EquipmentSerializer(many=True)}
    )
    def get(self, request):
        queryset = EquipmentService.list_equipment(
            request.user,
            status=request.query_params.get('status'),
            category=request.query_params.get('category'),
            search=request.query_params.get('search'),
        )
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = EquipmentSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @extend_schema(
        summary="Register equipment",
        request=EquipmentCreateSerializer,
        responses={201: EquipmentSerializer}
    )
    @method_decorator(ratelimit(key=organization_key, rate=EQUIPMENT_CREATE_RATE, method='POST'))
    def post(self, request):
        serializer = EquipmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        equipment = EquipmentService.create_equipment(request.user, serializer.validated_data)
        return Response(EquipmentSerializer(equipment).data, status=status.HTTP_201_CREATED)


class EquipmentDetailView(APIView):
    """
    GET /v1/equipment/{id}
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(summary="Get equipment", responses={200: EquipmentSerializer})
    def get(self, request, equipment_id):
        equipment = EquipmentService.get_equipment(request.user, equipment_id)
        return Response(EquipmentSerializer(equipment).data)


class EquipmentStatusView(APIView):
    """
    POST /v1/equipment/{id}/status - Change equipment status
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(
        summary="Change equipment status",
        request=StatusChangeSerializer,
        responses={
            200: EquipmentSerializer,
            409: {'description': 'Conflict - Invalid status transition'}
        }
    )
    def post(self, request, equipment_id):
        serializer = StatusChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        equipment = EquipmentService.change_status(
            request.user,
            equipment_id,
            serializer.validated_data['status'],
            notes=serializer.validated_data['notes'],
        )
        return Response(EquipmentSerializer(equipment).data)


class EquipmentHistoryView(APIView):
    """
    GET /v1/equipment/{id}/history - Status history, oldest first
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(summary="Equipment status history", responses={200: StatusHistorySerializer(many=True)})
    def get(self, request, equipment_id):
        history = EquipmentService.history(request.user, equipment_id)
        return Response(StatusHistorySerializer(history, many=True).data)


class FailureReportView(APIView):
    """
    POST /v1/equipment/{id}/failure-reports - Report a failure
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(
        summary="Report equipment failure",
        description="High and critical reports mark the equipment damaged",
        request=FailureReportCreateSerializer,
        responses={201: FailureReportSerializer}
    )
    def post(self, request, equipment_id):
        serializer = FailureReportCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report, equipment = EquipmentService.report_failure(
            request.user,
            equipment_id,
            serializer.validated_data['urgency'],
            serializer.validated_data['description'],
        )
        data = FailureReportSerializer(report).data
        data['equipment_status'] = equipment.status
        return Response(data, status=status.HTTP_201_CREATED)
