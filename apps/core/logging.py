"""
Structured logging helpers: PII masking, JSON formatting and security events.
"""
import json
import logging
import re
import traceback
from datetime import datetime, timezone as dt_timezone
from django.utils import timezone
import sentry_sdk


class PIIMasker:
    """
    Utility class to mask sensitive data in logs.
    """

    EMAIL_PATTERN = re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b')
    BEARER_PATTERN = re.compile(r'(bearer\s+)[A-Za-z0-9\-_.=]+', re.IGNORECASE)
    SECRET_PATTERN = re.compile(
        r'(token|secret|password|authorization)["\']?\s*[:=]\s*["\']?([^"\'\s,}]+)',
        re.IGNORECASE
    )

    # Field names whose values are never logged
    SENSITIVE_FIELDS = {
        'email', 'email_address', 'owner_email',
        'password', 'token', 'access_token', 'session_token',
        'authorization', 'secret', 'secret_key', 'jwt',
    }

    @classmethod
    def mask_email(cls, text):
        """Mask email addresses in text."""
        def mask_email_match(match):
            username, _, domain = match.group(0).partition('@')
            masked = username[0] + '*' * (len(username) - 1) if len(username) > 1 else username
            return f"{masked}@{domain}"
        return cls.EMAIL_PATTERN.sub(mask_email_match, text)

    @classmethod
    def mask_text(cls, text):
        """Apply all masking patterns to text."""
        if not isinstance(text, str):
            return text
        text = cls.BEARER_PATTERN.sub(r'\1********', text)
        text = cls.SECRET_PATTERN.sub(r'\1: ********', text)
        return cls.mask_email(text)

    @classmethod
    def mask_dict(cls, data):
        """Recursively mask sensitive data in dictionaries."""
        if not isinstance(data, dict):
            return data

        masked = {}
        for key, value in data.items():
            if key.lower() in cls.SENSITIVE_FIELDS and value and not isinstance(value, (dict, list)):
                masked[key] = '********'
            elif isinstance(value, dict):
                masked[key] = cls.mask_dict(value)
            elif isinstance(value, list):
                masked[key] = [
                    cls.mask_dict(item) if isinstance(item, dict) else cls.mask_text(item)
                    for item in value
                ]
            else:
                masked[key] = cls.mask_text(value)
        return masked


# Attributes every LogRecord carries; everything else came in through extra=
RESERVED_ATTRS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
    'levelno', 'lineno', 'module', 'msecs', 'message', 'pathname', 'process',
    'processName', 'relativeCreated', 'thread', 'threadName', 'exc_info',
    'exc_text', 'stack_info', 'taskName',
}


class JSONFormatter(logging.Formatter):
    """
    Format log records as JSON for structured logging.
    Includes request_id and tenant_id when present and masks PII.
    """

    def format(self, record):
        log_data = {
            'timestamp': datetime.now(dt_timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': PIIMasker.mask_text(record.getMessage()),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': PIIMasker.mask_text(str(record.exc_info[1])),
                'traceback': [PIIMasker.mask_text(line) for line in traceback.format_exception(*record.exc_info)],
            }

        for key, value in record.__dict__.items():
            if key in RESERVED_ATTRS or key.startswith('_'):
                continue
            if isinstance(value, dict):
                value = PIIMasker.mask_dict(value)
            elif key.lower() in PIIMasker.SENSITIVE_FIELDS and value:
                value = '********'
            else:
                value = PIIMasker.mask_text(value)
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = PIIMasker.mask_text(str(value))

        return json.dumps(log_data)


class SecurityLogger:
    """
    Centralized security event logging.

    Denials, invalid sessions and cross-tenant access attempts are logged on the
    ``security`` logger with structured context. Critical events are also
    sent to Sentry for alerting.
    """

    CRITICAL_EVENTS = {
        'audit_write_failed',
        'platform_role_fallback_failed',
    }

    @staticmethod
    def log_event(event_type: str, level: str = 'warning', **context):
        """
        Log a security event with structured data.

        Args:
            event_type: Type of security event (e.g., 'permission_denied')
            level: Log level ('info', 'warning', 'error', 'critical')
            **context: Additional context data (user_id, tenant_id, path, etc.)
        """
        logger = logging.getLogger('security')

        log_data = {
            'event_type': event_type,
            'event_timestamp': timezone.now().isoformat(),
        }
        log_data.update(context)
        log_data = PIIMasker.mask_dict(log_data)

        log_method = getattr(logger, level, logger.warning)
        log_method(f"Security event: {event_type}", extra=log_data)

        if event_type in SecurityLogger.CRITICAL_EVENTS:
            sentry_sdk.capture_message(
                f"Critical security event: {event_type}",
                level='error',
            )

    @staticmethod
    def log_invalid_session(reason: str, path: str = None, ip_address: str = None):
        """Log a rejected session credential."""
        SecurityLogger.log_event(
            'invalid_session',
            level='info',
            reason=reason,
            path=path,
            ip_address=ip_address,
        )

    @staticmethod
    def log_permission_denied(actor, action: str, code: str, resource_type: str = None, resource_id=None):
        """
        Log a permission denial.

        Args:
            actor: Actor that was denied
            action: Operation that was attempted
            code: Machine-readable denial code
            resource_type: Type of the targeted resource (optional)
            resource_id: ID of the targeted resource (optional)
        """
        SecurityLogger.log_event(
            'permission_denied',
            level='warning',
            user_id=str(actor.user_id) if actor else None,
            actor_tenant_id=str(actor.tenant_id) if actor and actor.tenant_id else None,
            attempted_action=action,
            code=code,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id else None,
        )

    @staticmethod
    def log_cross_tenant_access(actor, resource_type: str, resource_id):
        """
        Log a non-platform actor reaching for another tenant's resource.

        The caller still answers NotFound; this only leaves a trace.
        """
        SecurityLogger.log_event(
            'cross_tenant_access',
            level='warning',
            user_id=str(actor.user_id),
            actor_tenant_id=str(actor.tenant_id) if actor.tenant_id else None,
            resource_type=resource_type,
            resource_id=str(resource_id),
        )

    @staticmethod
    def log_platform_override(actor, action: str, tenant_id=None, resource_id=None):
        """Log a platform-role mutation that bypassed tenant equality."""
        SecurityLogger.log_event(
            'platform_override',
            level='info',
            user_id=str(actor.user_id),
            platform_role=actor.platform_role,
            attempted_action=action,
            target_tenant_id=str(tenant_id) if tenant_id else None,
            resource_id=str(resource_id) if resource_id else None,
        )

    @staticmethod
    def log_rate_limit_exceeded(path: str, rate_key: str, ip_address: str = None):
        SecurityLogger.log_event(
            'rate_limit_exceeded',
            level='warning',
            path=path,
            rate_key=rate_key,
            ip_address=ip_address,
        )
