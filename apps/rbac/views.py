"""
RBAC REST API views for membership management and the tenant audit trail.
"""
import logging

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.pagination import StandardResultsSetPagination
from apps.core.permissions import HasActiveTenant, IsAuthenticatedActor
from apps.rbac.serializers import (
    AddMemberSerializer,
    AuditLogSerializer,
    ChangeRoleSerializer,
    MembershipSerializer,
)
from apps.rbac.services import AuditLogService, MembershipService

logger = logging.getLogger(__name__)


class MembershipListView(APIView):
    """
    GET /v1/organizations/{tenant_id}/members - List members
    POST /v1/organizations/{tenant_id}/members - Add an existing user

    Adding requires owner or admin; admins cannot grant owner.
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(
        summary="List organization members",
        responses={200: MembershipSerializer(many=True)},
        tags=['Memberships']
    )
    def get(self, request, tenant_id):
        memberships = MembershipService.list_members(request.user, tenant_id)
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(memberships, request)
        return paginator.get_paginated_response(MembershipSerializer(page, many=True).data)

    @extend_schema(
        summary="Add organization member",
        request=AddMemberSerializer,
        responses={
            201: MembershipSerializer,
            403: {'description': 'Forbidden - Role cannot grant the requested role'},
            404: {'description': 'Not Found - Organization or user not found'}
        },
        tags=['Memberships']
    )
    def post(self, request, tenant_id):
        serializer = AddMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        membership = MembershipService.add_member(
            request.user,
            tenant_id,
            serializer.validated_data['email'],
            serializer.validated_data['role'],
        )
        return Response(MembershipSerializer(membership).data, status=status.HTTP_201_CREATED)


class MembershipDetailView(APIView):
    """
    PATCH /v1/organizations/{tenant_id}/members/{user_id} - Change role
    DELETE /v1/organizations/{tenant_id}/members/{user_id} - Remove member
    """
    permission_classes = [IsAuthenticatedActor, HasActiveTenant]

    @extend_schema(
        summary="Change member role",
        request=ChangeRoleSerializer,
        responses={
            200: MembershipSerializer,
            403: {'description': 'Forbidden - Cannot manage this member'},
            409: {'description': 'Conflict - Organization must keep an owner'}
        },
        tags=['Memberships']
    )
    def patch(self, request, tenant_id, user_id):
        serializer = ChangeRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        membership = MembershipService.change_role(
            request.user, tenant_id, user_id, serializer.validated_data['role']
        )
        return Response(MembershipSerializer(membership).data)

    @extend_schema(
        summary="Remove member",
        responses={
            204: None,
            403: {'description': 'Forbidden - Cannot manage this member'},
            409: {'description': 'Conflict - Organization must keep an owner'}
        },
        tags=['Memberships']
    )
    def delete(self, request, tenant_id, user_id):
        MembershipService.remove_member(request.user, tenant_id, user_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AuditLogListView(APIView):
    """
    GET /v1/audit-logs

    Audit entries of the active organization (owner or admin).
    """
    permission_classes = [IsAuthenticatedActor]

    @extend_schema(
        summary="List organization audit log",
        parameters=[
            OpenApiParameter(name='action', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='resource_type', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='resource_id', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='user_id', type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='from_date', type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='to_date', type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY),
        ],
        responses={200: AuditLogSerializer(many=True)},
        tags=['Audit']
    )
    def get(self, request):
        params = request.query_params
        logs = AuditLogService.list_for_tenant(
            request.user,
            action=params.get('action'),
            resource_type=params.get('resource_type'),
            resource_id=params.get('resource_id'),
            actor_id=params.get('user_id'),
            date_from=params.get('from_date'),
            date_to=params.get('to_date'),
        )
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(logs, request)
        return paginator.get_paginated_response(AuditLogSerializer(page, many=True).data)
