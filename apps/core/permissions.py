"""
DRF permission classes for session and platform-role enforcement.

Fine-grained decisions (member management, tenant-scoped mutations) live in
apps.rbac.permissions and are evaluated by services; the classes here only
gate views on coarse facts of the resolved Actor.
"""
import logging
from rest_framework.permissions import BasePermission

logger = logging.getLogger(__name__)


def _actor(request):
    actor = getattr(request, 'user', None)
    if actor is None or not getattr(actor, 'is_authenticated', False):
        return None
    return actor


class IsAuthenticatedActor(BasePermission):
    """
    Allow access only when ActorContextMiddleware resolved a session.

    Anonymous requests are answered with 401 UNAUTHENTICATED by DRF.
    """

    def has_permission(self, request, view):
        return _actor(request) is not None


class HasActiveTenant(BasePermission):
    """
    Require a session that names an active organization.

    Platform actors pass as well: their tenant-scoped access is decided by
    the cross-tenant override inside services.
    """
    message = 'An active organization is required for this operation.'
    code = 'NO_ACTIVE_TENANT'

    def has_permission(self, request, view):
        actor = _actor(request)
        if actor is None:
            return False
        return actor.tenant_id is not None or actor.is_platform


class IsPlatformStaff(BasePermission):
    """
    Allow platform_admin and platform_support.

    Write operations on platform endpoints are further restricted to
    platform_admin by PlatformAdminService.
    """
    message = 'This operation is available to platform staff only.'
    code = 'PLATFORM_ROLE_REQUIRED'

    def has_permission(self, request, view):
        actor = _actor(request)
        if actor is None:
            return False

        if not actor.is_platform:
            logger.warning(
                "Platform endpoint denied for non-platform actor",
                extra={
                    'user_id': str(actor.user_id),
                    'view': view.__class__.__name__,
                    'method': request.method,
                    'path': request.path,
                }
            )
            return False
        return True
