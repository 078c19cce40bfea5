"""
Custom DRF authentication classes.
"""
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed


class MiddlewareAuthentication(BaseAuthentication):
    """
    DRF authentication class that uses the actor set by ActorContextMiddleware.

    The middleware verifies the session credential once per request; this
    class hands the resulting Actor to DRF so ``request.user`` is the actor.
    A credential that was presented but failed verification is reported
    here so the view answers 401 instead of treating the caller as anonymous.
    """

    def authenticate(self, request):
        """
        Return the actor from the middleware if present.

        Returns:
            tuple: (actor, None) if a session was resolved, None otherwise
        """
        django_request = request._request

        session_error = getattr(django_request, 'session_error', None)
        if session_error is not None:
            raise AuthenticationFailed(session_error.message, code=session_error.code)

        actor = getattr(django_request, 'actor', None)
        if actor is not None and actor.is_authenticated:
            return (actor, None)

        return None

    def authenticate_header(self, request):
        return 'Bearer'
