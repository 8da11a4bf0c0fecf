"""Utility functions for audit logging, references and pagination"""
import logging
import random
from datetime import timedelta

from django.core.paginator import Paginator
from django.utils import timezone
from django.utils.dateparse import parse_date

from .models import AuditLog

logger = logging.getLogger(__name__)

REFERENCE_MAX_ATTEMPTS = 3


class ReferenceGenerationError(Exception):
    """Raised when no free reference could be found for today"""


def parse_day(value):
    """
    Parse a YYYY-MM-DD query value. Empty values give None; malformed or
    impossible dates such as 2024-02-30 raise ValueError.
    """
    if not value:
        return None
    day = parse_date(value)
    if day is None:
        raise ValueError(f'Invalid date: {value}')
    return day


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


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, order_status, refund, etc.)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object
        object_reference: Reference identifier (e.g., order reference)
    """
    try:
        audit_user = None
        if user:
            audit_user = user
        elif request and hasattr(request, 'user'):
            audit_user = request.user

        ip_address = get_client_ip(request) if request else None

        if not action or not model_name or not object_id:
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=ip_address
        )
    except Exception as e:
        # Audit failures never break the main operation
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def generate_reference(model, prefix, field='reference'):
    """
    Build a daily sequential reference such as ``SH-250114-0007``.

    The sequence is today's row count + 1. When that value is already taken
    the suffix is replaced with a random 4-digit number; after
    REFERENCE_MAX_ATTEMPTS tries ReferenceGenerationError is raised.
    """
    now = timezone.localtime()
    date_part = now.strftime('%y%m%d')
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    count = model.objects.filter(
        created_at__gte=start_of_day,
        created_at__lt=start_of_day + timedelta(days=1)
    ).count()

    reference = f"{prefix}-{date_part}-{count + 1:04d}"
    for attempt in range(REFERENCE_MAX_ATTEMPTS):
        if not model.objects.filter(**{field: reference}).exists():
            return reference
        logger.info(f"Reference collision on {reference} (attempt {attempt + 1})")
        reference = f"{prefix}-{date_part}-{random.randint(0, 9999):04d}"
    raise ReferenceGenerationError('Could not generate unique reference')


def paginate(request, queryset, serializer_class, default_limit=15, context=None):
    """Paginate a queryset with ``page``/``limit`` query params and serialize the page"""
    try:
        page = max(int(request.query_params.get('page', 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = max(int(request.query_params.get('limit', default_limit)), 1)
    except (TypeError, ValueError):
        limit = default_limit

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return {
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    }
