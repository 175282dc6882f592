"""Utility functions for audit logging"""
import logging

from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, target_type=None, target_id=None,
                     details='', changes=None, user=None):
    """
    Create an audit log entry

    Args:
        request: Django/DRF request (for user and IP) - optional if user is provided
        action: one of AuditLog.ACTION_CHOICES (CREATE, UPDATE, DELETE, LOGIN, ...)
        target_type: kind of object acted upon (page, page_section, media, ...)
        target_id: primary key of the object
        details: human-readable description shown in the audit viewer
        changes: dictionary of changed fields
        user: optional user override (defaults to request.user)

    Failures are logged and never propagate to the caller.
    """
    try:
        audit_user = user
        if audit_user is None and request is not None and hasattr(request, 'user'):
            audit_user = request.user

        if not action or not target_type:
            logger.warning(
                f"Audit log creation skipped: missing required fields "
                f"(action={action}, target_type={target_type})"
            )
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user is not None and audit_user.is_authenticated else None,
            action=action,
            target_type=target_type,
            target_id=str(target_id) if target_id is not None else None,
            details=details or '',
            changes=changes or {},
            ip_address=get_client_ip(request) if request is not None else None,
        )
    except Exception as e:
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def paginate_params(request, default_limit=20, max_limit=200):
    """Read `page` and `limit` query params, falling back to defaults on junk input"""
    try:
        page = max(int(request.query_params.get('page', 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(request.query_params.get('limit', default_limit))
    except (TypeError, ValueError):
        limit = default_limit
    limit = min(max(limit, 1), max_limit)
    return page, limit


def paginate_queryset(queryset, page, limit):
    """Slice a queryset and build the pagination block used by list endpoints"""
    total = queryset.count()
    offset = (page - 1) * limit
    items = list(queryset[offset:offset + limit])
    pagination = {
        'total': total,
        'page': page,
        'limit': limit,
        'pages': (total + limit - 1) // limit,
    }
    return items, pagination


def casefold_matches(queryset, field, value):
    """
    Primary keys of rows whose `field` equals `value` ignoring case.

    Compared in Python with str.casefold(); SQLite's LIKE and lower()
    fold ASCII only.
    """
    wanted = str(value).casefold()
    return [pk for pk, current in queryset.values_list('pk', field)
            if current is not None and current.casefold() == wanted]
