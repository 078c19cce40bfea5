"""
Per-organization rate limits for mutation endpoints.

Counters live in the default cache through django-ratelimit, so limits are
shared across workers when Redis is configured.
"""

# Requests per organization
EQUIPMENT_CREATE_RATE = '20/m'
SERVICE_REQUEST_CREATE_RATE = '10/m'

RETRY_AFTER_SECONDS = 60


def organization_key(group, request):
    """
    Bucket requests by the actor's active organization.

    Actors without one (onboarding users, platform staff) are bucketed
    per user.
    """
    actor = getattr(request, 'user', None)
    tenant_id = getattr(actor, 'tenant_id', None)
    if tenant_id:
        return f"org:{tenant_id}"
    user_id = getattr(actor, 'user_id', None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{request.META.get('REMOTE_ADDR', 'unknown')}"
