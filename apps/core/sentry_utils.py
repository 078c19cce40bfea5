"""
Sentry utilities for adding context and breadcrumbs.
"""
import sentry_sdk
from django.conf import settings


def set_actor_context(actor):
    """
    Attach the acting session to Sentry events.
    Only identifiers and roles are sent; no email or name.

    Args:
        actor: Actor resolved for the current request
    """
    if not settings.SENTRY_DSN or actor is None:
        return

    sentry_sdk.set_user({"id": str(actor.user_id)})
    sentry_sdk.set_context("actor", {
        "tenant_id": str(actor.tenant_id) if actor.tenant_id else None,
        "org_role": actor.org_role,
        "platform_role": actor.platform_role,
    })

    if actor.tenant_id:
        sentry_sdk.set_tag("tenant_id", str(actor.tenant_id))
    if actor.platform_role:
        sentry_sdk.set_tag("platform_role", actor.platform_role)


def add_breadcrumb(category, message, level="info", data=None):
    """
    Add a breadcrumb to Sentry for debugging.

    Args:
        category: Category of the breadcrumb (e.g., "workflow", "notification")
        message: Human-readable message
        level: Severity level (debug, info, warning, error)
        data: Optional dictionary of additional data
    """
    if not settings.SENTRY_DSN:
        return

    sentry_sdk.add_breadcrumb(
        category=category,
        message=message,
        level=level,
        data=data or {}
    )


def capture_exception(exception, **kwargs):
    """
    Capture an exception in Sentry with optional context.

    Args:
        exception: The exception to capture
        **kwargs: Additional context to attach
    """
    if not settings.SENTRY_DSN:
        return

    with sentry_sdk.new_scope() as scope:
        for key, value in kwargs.items():
            scope.set_context(key, value)
        sentry_sdk.capture_exception(exception)
