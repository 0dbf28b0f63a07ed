"""Persistence for the Gig aggregate.

A gig and its applications form one aggregate. Reads go through ``get_gig``,
which prefetches the application list; writes go through ``commit``, a
compare-and-swap on ``Gig.version``. A write built from a snapshot that is no
longer current matches zero rows and raises ``InvalidTransition``, so the
caller's enclosing transaction rolls back any dependent rows with it.
"""
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import DatabaseError
from django.db.models import Count, F
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from core.constants import GIG_CATEGORY_CHOICES, GIG_STATUS_CHOICES, GIG_STATUS_OPEN, GIG_SORT_FIELDS
from core.exceptions import Forbidden, InvalidTransition, NotFound, ValidationError, storage_guard
from core.utils import parse_pagination
from .models import Gig

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    'title', 'description', 'category', 'address', 'city', 'state', 'pincode',
    'start_time', 'end_time', 'hourly_rate',
)
OPTIONAL_FIELDS = ('latitude', 'longitude', 'requirements', 'skills', 'is_urgent', 'max_applications')
EDITABLE_FIELDS = REQUIRED_FIELDS + OPTIONAL_FIELDS
DERIVED_INPUTS = ('hourly_rate', 'start_time', 'end_time')

CATEGORIES = {value for value, _ in GIG_CATEGORY_CHOICES}
STATUSES = {value for value, _ in GIG_STATUS_CHOICES}


def _to_datetime(value, field):
    if isinstance(value, str):
        value = parse_datetime(value)
    if not isinstance(value, datetime):
        raise ValidationError(f"{field} must be a valid timestamp.")
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


def _to_decimal(value, field):
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number.")


def clean_gig_fields(fields):
    """Normalize editable gig fields and enforce the posting rules on the full field set."""
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown gig fields: {', '.join(sorted(unknown))}")

    missing = [name for name in REQUIRED_FIELDS if fields.get(name) in (None, '')]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cleaned = dict(fields)
    if cleaned['category'] not in CATEGORIES:
        raise ValidationError("Invalid category.")

    cleaned['hourly_rate'] = _to_decimal(cleaned['hourly_rate'], 'hourly_rate')
    minimum = Decimal(str(settings.GIG_MIN_HOURLY_RATE))
    if cleaned['hourly_rate'] < minimum:
        raise ValidationError(f"Hourly rate must be at least {minimum}.")

    cleaned['start_time'] = _to_datetime(cleaned['start_time'], 'start_time')
    cleaned['end_time'] = _to_datetime(cleaned['end_time'], 'end_time')
    if cleaned['end_time'] <= cleaned['start_time']:
        raise ValidationError("end_time must be after start_time.")

    for name in ('latitude', 'longitude'):
        if cleaned.get(name) is not None:
            cleaned[name] = _to_decimal(cleaned[name], name)

    if 'max_applications' in cleaned:
        try:
            cleaned['max_applications'] = int(cleaned['max_applications'])
        except (TypeError, ValueError):
            raise ValidationError("max_applications must be a whole number.")
        if cleaned['max_applications'] < 1:
            raise ValidationError("max_applications must be at least 1.")
    return cleaned


@storage_guard
def create_gig(store, **fields):
    if not getattr(store, 'is_store', False):
        raise Forbidden("Only stores can post gigs.")
    cleaned = clean_gig_fields(fields)
    gig = Gig(store=store, **cleaned)
    gig.save()
    logger.info(f"Store {store.pk} created gig {gig.pk} ({gig.total_amount} for {gig.duration}h)")
    return gig


@storage_guard
def get_gig(gig_id):
    try:
        return (
            Gig.objects.select_related('store', 'worker')
            .prefetch_related('applications__worker')
            .get(pk=gig_id)
        )
    except (Gig.DoesNotExist, ValueError, TypeError):
        raise NotFound("Gig not found.")


def commit(gig, **changes):
    """Write ``changes`` only if the stored gig is still at ``gig.version``.

    Derived fields are recomputed whenever the rate or schedule changes.
    """
    for name, value in changes.items():
        setattr(gig, name, value)
    if any(name in changes for name in DERIVED_INPUTS):
        gig.calculate_total_amount()
        changes['duration'] = gig.duration
        changes['total_amount'] = gig.total_amount

    changes['updated_at'] = timezone.now()
    updated = Gig.objects.filter(pk=gig.pk, version=gig.version).update(version=F('version') + 1, **changes)
    if not updated:
        logger.warning(f"Stale write rejected for gig {gig.pk} at version {gig.version}")
        raise InvalidTransition("Gig was modified by another request, reload and try again.")
    gig.updated_at = changes['updated_at']
    gig.version += 1
    return gig


@storage_guard
def update_gig(gig_id, store, **changes):
    gig = get_gig(gig_id)
    if gig.store_id != getattr(store, 'pk', None):
        raise Forbidden("Not authorized to update this gig.")
    if gig.status != GIG_STATUS_OPEN:
        raise InvalidTransition("Only open gigs can be edited.")

    current = {name: getattr(gig, name) for name in EDITABLE_FIELDS}
    current.update(changes)
    cleaned = clean_gig_fields(current)
    if cleaned['max_applications'] < len(gig.applications.all()):
        raise ValidationError("max_applications cannot be lower than the applications already received.")

    commit(gig, **{name: cleaned[name] for name in changes})
    logger.info(f"Store {store.pk} updated gig {gig.pk}: {', '.join(sorted(changes))}")
    return gig


def record_view(gig):
    """Best-effort view counter; not version guarded and may lose increments."""
    try:
        Gig.objects.filter(pk=gig.pk).update(views=F('views') + 1)
        gig.views += 1
    except DatabaseError as e:
        logger.warning(f"Could not record view for gig {gig.pk}: {str(e)}")
    return gig


@storage_guard
def query_gigs(filters=None, sort_by='created_at', sort_order='desc', page=1, limit=10):
    """Return ``(items, total_count)`` for one 1-indexed page of matching gigs."""
    filters = filters or {}
    page, limit = parse_pagination(page, limit)
    if sort_by not in GIG_SORT_FIELDS:
        raise ValidationError(f"Cannot sort by '{sort_by}'.")
    if sort_order not in ('asc', 'desc'):
        raise ValidationError("sort_order must be 'asc' or 'desc'.")

    queryset = Gig.objects.select_related('store', 'worker')
    status = filters.get('status')
    if status:
        if status not in STATUSES:
            raise ValidationError(f"Invalid status '{status}'.")
        queryset = queryset.filter(status=status)
    category = filters.get('category')
    if category:
        if category not in CATEGORIES:
            raise ValidationError("Invalid category.")
        queryset = queryset.filter(category=category)
    if filters.get('city'):
        queryset = queryset.filter(city__iexact=filters['city'])
    if filters.get('store') is not None:
        queryset = queryset.filter(store=filters['store'])
    if filters.get('worker') is not None:
        queryset = queryset.filter(worker=filters['worker'])

    total = queryset.count()
    prefix = '-' if sort_order == 'desc' else ''
    offset = (page - 1) * limit
    items = list(
        queryset.annotate(applications_count=Count('applications'))
        .order_by(f'{prefix}{sort_by}', f'{prefix}id')[offset:offset + limit]
    )
    return items, total
