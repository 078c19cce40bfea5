"""
Session and portal routing middleware.
"""
import logging
from django.http import HttpResponseRedirect
from django.utils.deprecation import MiddlewareMixin

from apps.core.exceptions import Unauthenticated
from apps.core.logging import SecurityLogger
from apps.core.middleware import set_log_context
from apps.core.sentry_utils import set_actor_context
from apps.rbac.session import SessionResolver
from apps.tenants.routing import RoutingGuard, is_bypassed

logger = logging.getLogger(__name__)


class ActorContextMiddleware(MiddlewareMixin):
    """
    Resolve the session credential once per request.

    Sets on the request:
    - request.actor: Actor, or None when no valid credential was supplied
    - request.session_error: Unauthenticated raised for a presented but
      rejected credential, else None
    - request.session_token: the raw credential, or None

    The middleware never rejects a request itself; API views answer 401
    through MiddlewareAuthentication and browser paths are handled by
    PortalRoutingMiddleware.
    """

    def process_request(self, request):
        request.actor = None
        request.session_error = None
        request.session_token = SessionResolver.extract_token(request)

        if not request.session_token:
            return None

        try:
            actor = SessionResolver.resolve(request.session_token)
        except Unauthenticated as exc:
            request.session_error = exc
            SecurityLogger.log_invalid_session(
                reason=exc.details.get('reason', exc.code),
                path=request.path,
                ip_address=request.META.get('REMOTE_ADDR'),
            )
            return None

        request.actor = actor
        set_log_context(tenant_id=actor.tenant_id)
        set_actor_context(actor)
        return None


class PortalRoutingMiddleware(MiddlewareMixin):
    """
    Apply the routing guard to browser (non-API) requests.

    Redirects with HTTP 302 when the guard does not allow the requested
    section. API, schema, static and public auth paths are not inspected.
    """

    def process_request(self, request):
        if is_bypassed(request.path):
            return None

        credential = getattr(request, 'session_token', None)
        if credential is None:
            credential = SessionResolver.extract_token(request)

        decision = RoutingGuard.decide(request.path, credential)
        if decision.allowed:
            return None

        logger.debug(
            "Portal redirect",
            extra={
                'path': request.path,
                'redirect_to': decision.redirect_to,
                'reason': decision.reason,
            }
        )
        return HttpResponseRedirect(decision.redirect_to)

