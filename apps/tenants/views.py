"""
Session context, routing decision and organization onboarding views.
"""
import logging

from django.conf import settings
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.permissions import IsAuthenticatedActor
from apps.tenants.routing import RoutingGuard
from apps.tenants.serializers import (
    CreateTenantSerializer,
    RoutingDecisionSerializer,
    SwitchTenantSerializer,
    TenantSerializer,
)
from apps.tenants.services import TenantService

logger = logging.getLogger(__name__)


def _with_session_cookie(response, token):
    response.set_cookie(
        settings.SESSION_TOKEN_COOKIE_NAME,
        token,
        max_age=settings.JWT_EXPIRATION_HOURS * 3600,
        httponly=True,
        secure=not settings.DEBUG,
        samesite='Lax',
    )
    return response


class SessionView(APIView):
    """
    GET /v1/session - Identity, active organization and memberships
    """
    permission_classes = [IsAuthenticatedActor]

    @extend_schema(summary="Current session", tags=['Session'])
    def get(self, request):
        return Response(TenantService.get_session_context(request.user))


class SessionRouteView(APIView):
    """
    GET /v1/session/route?path=/hospital/dashboard

    Routing decision for a portal path, as used by edge routers. Never
    fails on a bad credential; the decision itself says where to go.
    """
    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Routing decision",
        parameters=[
            OpenApiParameter(name='path', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY,
                             description='Portal path being requested'),
        ],
        responses={200: RoutingDecisionSerializer},
        tags=['Session']
    )
    def get(self, request):
        path = request.query_params.get('path') or '/'
        decision = RoutingGuard.decide(path, getattr(request, 'session_token', None))
        return Response(RoutingDecisionSerializer(decision.as_dict()).data)


class SwitchTenantView(APIView):
    """
    POST /v1/session/switch-tenant - Re-issue the session for another organization
    """
    permission_classes = [IsAuthenticatedActor]

    @extend_schema(
        summary="Switch active organization",
        request=SwitchTenantSerializer,
        responses={200: {'type': 'object'}, 404: {'description': 'Not a member of this organization'}},
        tags=['Session']
    )
    def post(self, request):
        serializer = SwitchTenantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        membership, token = TenantService.switch_tenant(request.user, serializer.validated_data['tenant_id'])
        response = Response({
            'token': token,
            'tenant': TenantSerializer(membership.tenant).data,
            'org_role': membership.role,
        })
        return _with_session_cookie(response, token)


class CreateTenantView(APIView):
    """
    POST /v1/organizations - Onboard a new organization with the caller as owner
    """
    permission_classes = [IsAuthenticatedActor]

    @extend_schema(
        summary="Create organization",
        request=CreateTenantSerializer,
        responses={201: {'type': 'object'}},
        tags=['Organizations']
    )
    def post(self, request):
        serializer = CreateTenantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        tenant, token = TenantService.create_tenant(
            request.user,
            serializer.validated_data['name'],
            serializer.validated_data['kind'],
        )
        response = Response(
            {'token': token, 'tenant': TenantSerializer(tenant).data, 'org_role': 'owner'},
            status=status.HTTP_201_CREATED
        )
        return _with_session_cookie(response, token)
