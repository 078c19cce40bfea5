"""
Session resolution: signed credential in, Actor out.

The Actor is the only carrier of "who is acting and within which tenant";
it is threaded explicitly through every service call and never read from
ambient state.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import jwt
from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.utils import timezone

from apps.core.exceptions import NoActiveTenant, Unauthenticated
from apps.core.logging import SecurityLogger
from apps.rbac.roles import OrgRole, PlatformRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """
    Per-request view over a user plus their active membership or platform role.

    Never persisted. ``org_role`` is only meaningful together with ``tenant_id``.
    """
    user_id: str
    tenant_id: Optional[str] = None
    org_role: Optional[str] = None
    platform_role: Optional[str] = None

    # DRF treats the actor as request.user
    is_authenticated = True
    is_anonymous = False

    @property
    def pk(self):
        return self.user_id

    @property
    def is_platform(self) -> bool:
        return self.platform_role is not None

    @property
    def is_platform_admin(self) -> bool:
        return self.platform_role == PlatformRole.PLATFORM_ADMIN

    def require_tenant(self) -> str:
        """Return the active tenant id or raise NoActiveTenant."""
        if self.tenant_id is None:
            raise NoActiveTenant("No active organization in this session")
        return self.tenant_id


def _canonical_uuid(value, claim):
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError):
        raise Unauthenticated(
            "Session credential is malformed",
            details={'claim': claim}
        )


class SessionResolver:
    """
    Verify signed session tokens (HS256 JWT) and mint new ones.

    Claims: sub (user id), org_id, org_role, platform_role, exp, iat.
    Any verification failure raises Unauthenticated; a valid token without
    org_id yields an Actor without a tenant (callers use require_tenant()).
    """

    AUTH_HEADER_PREFIX = 'Bearer '

    @staticmethod
    def extract_token(request) -> Optional[str]:
        """Read the credential from the Authorization header or session cookie."""
        header = request.META.get('HTTP_AUTHORIZATION', '')
        if header.startswith(SessionResolver.AUTH_HEADER_PREFIX):
            token = header[len(SessionResolver.AUTH_HEADER_PREFIX):].strip()
            return token or None
        return request.COOKIES.get(settings.SESSION_TOKEN_COOKIE_NAME) or None

    @classmethod
    def resolve(cls, token) -> Actor:
        """
        Turn a signed credential into an Actor.

        Raises:
            Unauthenticated: missing, garbled, expired or badly signed token,
                or claims outside the closed role vocabularies
        """
        if not token:
            raise Unauthenticated("Session credential is missing")

        try:
            claims = jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM],
                options={'require': ['exp', 'sub']},
            )
        except jwt.ExpiredSignatureError:
            raise Unauthenticated("Session has expired", details={'reason': 'expired'})
        except jwt.InvalidTokenError:
            raise Unauthenticated("Session credential is invalid", details={'reason': 'invalid'})

        user_id = _canonical_uuid(claims.get('sub'), 'sub')

        tenant_id = claims.get('org_id')
        org_role = claims.get('org_role')
        if tenant_id is not None:
            tenant_id = _canonical_uuid(tenant_id, 'org_id')
            if org_role not in OrgRole.values:
                raise Unauthenticated(
                    "Session organization role is invalid",
                    details={'claim': 'org_role'}
                )
        elif org_role is not None:
            raise Unauthenticated(
                "Session carries a role without an organization",
                details={'claim': 'org_role'}
            )

        platform_role = claims.get('platform_role')
        if platform_role is not None and platform_role not in PlatformRole.values:
            raise Unauthenticated(
                "Session platform role is invalid",
                details={'claim': 'platform_role'}
            )
        if platform_role is None and 'platform_role' not in claims:
            platform_role = cls._fallback_platform_role(user_id)

        return Actor(
            user_id=user_id,
            tenant_id=tenant_id,
            org_role=org_role,
            platform_role=platform_role,
        )

    @classmethod
    def _fallback_platform_role(cls, user_id) -> Optional[str]:
        """
        Read the platform role from the user record when the claim is absent.

        Disabled unless PLATFORM_ROLE_FROM_USER_RECORD is set. Looks the user
        up by id only. Any lookup failure rejects the session.
        """
        if not settings.PLATFORM_ROLE_FROM_USER_RECORD:
            return None

        from apps.rbac.models import User

        try:
            role = (
                User.objects.active()
                .filter(id=user_id)
                .values_list('platform_role', flat=True)
                .first()
            )
        except (DatabaseError, DjangoValidationError):
            logger.error("Platform role fallback lookup failed", exc_info=True)
            SecurityLogger.log_event(
                'platform_role_fallback_failed',
                level='error',
                user_id=user_id,
            )
            raise Unauthenticated("Session could not be verified", details={'reason': 'lookup_failed'})

        if role is not None and role not in PlatformRole.values:
            return None
        return role

    @classmethod
    def issue(cls, user_id, tenant_id=None, org_role=None, platform_role=None) -> str:
        """
        Mint a signed session token.

        Args:
            user_id: User the session belongs to
            tenant_id: Active organization (None for no active organization)
            org_role: Role within tenant_id (required with tenant_id)
            platform_role: Platform role claim (None for regular users)

        Returns:
            Encoded JWT string
        """
        if tenant_id is not None and org_role not in OrgRole.values:
            raise ValueError("org_role is required when tenant_id is set")

        now = timezone.now()
        payload = {
            'sub': str(user_id),
            'iat': now,
            'exp': now + timedelta(hours=settings.JWT_EXPIRATION_HOURS),
            'platform_role': platform_role,
        }
        if tenant_id is not None:
            payload['org_id'] = str(tenant_id)
            payload['org_role'] = str(org_role)

        return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
