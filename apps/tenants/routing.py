"""
Portal routing guard.

Decides, per browser request, which application section a session may
reach. The decision depends only on the verified session and on the tenant
kind read from the store; no client-controlled cookie is trusted for it.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from apps.core.exceptions import Unauthenticated, Unavailable
from apps.rbac.session import SessionResolver

logger = logging.getLogger(__name__)


SIGN_IN_PATH = '/sign-in'
ONBOARDING_PATH = '/onboarding'

SECTION_PREFIXES = {
    'hospital': '/hospital',
    'provider': '/provider',
    'admin': '/admin',
    'onboarding': ONBOARDING_PATH,
}

LANDING_PAGES = {
    'hospital': '/hospital/dashboard',
    'provider': '/provider/dashboard',
    'admin': '/admin/dashboard',
}

# Paths the guard never inspects
BYPASS_PREFIXES = (
    '/v1/',
    '/schema',
    '/static',
    '/healthz',
    '/django-admin',
    '/favicon.ico',
)

PUBLIC_PATHS = (
    SIGN_IN_PATH,
    '/sign-up',
    '/forgot-password',
    '/reset-password',
)


@dataclass(frozen=True)
class RoutingDecision:
    allowed: bool
    redirect_to: Optional[str] = None
    reason: str = ''

    def as_dict(self):
        return {
            'allowed': self.allowed,
            'redirect_to': self.redirect_to,
            'reason': self.reason,
        }


def _matches(path, prefix):
    return path == prefix or path.startswith(prefix + '/')


def section_for_path(path: str) -> Optional[str]:
    """Return the section a path belongs to, or None for unsectioned paths."""
    for section, prefix in SECTION_PREFIXES.items():
        if _matches(path, prefix):
            return section
    return None


def is_bypassed(path: str) -> bool:
    if path.startswith(BYPASS_PREFIXES):
        return True
    return any(_matches(path, public) for public in PUBLIC_PATHS)


def sign_in_redirect(return_to: Optional[str] = None) -> str:
    if not return_to or return_to == '/':
        return SIGN_IN_PATH
    return f"{SIGN_IN_PATH}?{urlencode({'returnTo': return_to})}"


class RoutingGuard:
    """
    Routing decision procedure.

    Order of evaluation:
    1. no credential -> sign-in (requested path kept as returnTo)
    2. credential that fails verification -> sign-in
    3. platform role -> admin section only
    4. no active tenant -> onboarding only
    5. active tenant -> the section matching the tenant kind
    6. tenant kind cannot be determined -> sign-in, never a default kind
    """

    @classmethod
    def decide(cls, path: str, credential: Optional[str]) -> RoutingDecision:
        path = path or '/'

        if not credential:
            return RoutingDecision(False, sign_in_redirect(path), 'no_credential')

        try:
            actor = SessionResolver.resolve(credential)
        except (Unauthenticated, Unavailable):
            return RoutingDecision(False, sign_in_redirect(path), 'invalid_session')

        section = section_for_path(path)

        if actor.is_platform:
            if section == 'admin':
                return RoutingDecision(True, reason='platform_section')
            return RoutingDecision(False, LANDING_PAGES['admin'], 'platform_only')

        if actor.tenant_id is None:
            if section == 'onboarding':
                return RoutingDecision(True, reason='onboarding')
            return RoutingDecision(False, ONBOARDING_PATH, 'no_active_tenant')

        try:
            kind = cls._tenant_kind(actor.tenant_id)
        except Unavailable:
            logger.warning(
                "Tenant kind unavailable, forcing re-authentication",
                extra={'tenant_id': actor.tenant_id, 'path': path}
            )
            return RoutingDecision(False, sign_in_redirect(path), 'tenant_kind_unavailable')

        if kind not in ('hospital', 'provider'):
            return RoutingDecision(False, sign_in_redirect(path), 'tenant_kind_unknown')

        if section == kind:
            return RoutingDecision(True, reason='tenant_section')

        if path == '/':
            return RoutingDecision(False, LANDING_PAGES[kind], 'landing')

        # Onboarding and unsectioned paths included
        return RoutingDecision(False, LANDING_PAGES[kind], 'wrong_section')

    @staticmethod
    def _tenant_kind(tenant_id):
        from apps.tenants.services import TenantService
        return TenantService.get_tenant_kind(tenant_id)
