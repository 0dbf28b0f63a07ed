"""Gig lifecycle: applications, assignment, execution, completion.

    open --accept--> assigned --start--> in-progress --complete--> completed
    open/assigned --cancel--> cancelled

Each transition reads the gig aggregate, checks its preconditions against that
snapshot and then writes through ``store.commit`` inside one transaction, so
of two requests racing on the same gig only the first write lands. Side
effects on other tables (applications, payments) share that transaction.
Notifications go out after it commits and never fail the transition.
"""
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.notifications.utils import notify
from apps.payments.utils import record_payment
from core.constants import (
    GIG_STATUS_OPEN, GIG_STATUS_ASSIGNED, GIG_STATUS_IN_PROGRESS, GIG_STATUS_COMPLETED, GIG_STATUS_CANCELLED,
    GIG_CANCELLABLE_STATUSES, APPLICATION_STATUS_PENDING, APPLICATION_STATUS_ACCEPTED, APPLICATION_STATUS_REJECTED,
)
from core.exceptions import (
    ApplicationLimitReached, ConflictError, DuplicateApplication, Forbidden, InvalidTransition, NotFound,
    ValidationError, storage_guard,
)
from .models import GigApplication, GigReview
from .store import commit, get_gig, query_gigs, record_view

logger = logging.getLogger(__name__)

MAX_APPLICATION_MESSAGE_LENGTH = 500
APPLICATION_ACTIONS = ('accept', 'reject')


def _require_role(user, role):
    if getattr(user, 'user_type', None) != role:
        raise Forbidden(f"Only {role}s can perform this action.")


def _require_assigned_worker(gig, worker, verb):
    if gig.worker_id is None or gig.worker_id != getattr(worker, 'pk', None):
        raise Forbidden(f"Not authorized to {verb} this gig.")


@storage_guard
def view_gig(gig_id):
    gig = get_gig(gig_id)
    record_view(gig)
    return gig


def list_gigs(status=GIG_STATUS_OPEN, category=None, city=None, sort_by='created_at', sort_order='desc',
              page=1, limit=10):
    filters = {'status': status, 'category': category, 'city': city}
    return query_gigs(filters, sort_by=sort_by, sort_order=sort_order, page=page, limit=limit)


def list_my_gigs(user, status=None, page=1, limit=10):
    if getattr(user, 'is_store', False):
        filters = {'store': user}
    elif getattr(user, 'is_worker', False):
        filters = {'worker': user}
    else:
        raise Forbidden("Only stores and workers have gigs.")
    filters['status'] = status
    return query_gigs(filters, page=page, limit=limit)


@storage_guard
def apply_for_gig(gig_id, worker, message=''):
    _require_role(worker, 'worker')
    message = (message or '').strip()
    if len(message) > MAX_APPLICATION_MESSAGE_LENGTH:
        raise ValidationError(f"Message must not exceed {MAX_APPLICATION_MESSAGE_LENGTH} characters.")

    gig = get_gig(gig_id)
    if gig.status != GIG_STATUS_OPEN:
        raise InvalidTransition("Gig is not open for applications.")
    if gig.has_applied(worker):
        raise DuplicateApplication()
    # Counts every application ever made, rejected ones included
    if len(gig.applications.all()) >= gig.max_applications:
        raise ApplicationLimitReached()

    try:
        with transaction.atomic():
            commit(gig)
            application = GigApplication.objects.create(gig=gig, worker=worker, message=message)
    except IntegrityError:
        raise DuplicateApplication()

    logger.info(f"Worker {worker.pk} applied to gig {gig.pk}")
    notify(
        gig.store, 'application_received', 'New Application Received',
        f"{worker.display_name} has applied for your gig: {gig.title}",
        sender=worker, gig=gig, application_id=application.pk,
    )
    return application


@storage_guard
def resolve_application(gig_id, application_id, store, action):
    if action not in APPLICATION_ACTIONS:
        raise ValidationError("Action must be either accept or reject.")

    gig = get_gig(gig_id)
    if gig.store_id != getattr(store, 'pk', None):
        raise Forbidden("Not authorized to manage this gig.")
    application = gig.find_application(application_id)
    if application is None:
        raise NotFound("Application not found.")
    if gig.status != GIG_STATUS_OPEN:
        raise InvalidTransition("Applications can only be resolved while the gig is open.")
    if application.status != APPLICATION_STATUS_PENDING:
        raise ConflictError(f"Application has already been {application.status}.")

    with transaction.atomic():
        if action == 'accept':
            commit(gig, status=GIG_STATUS_ASSIGNED, worker=application.worker, assigned_at=timezone.now())
            GigApplication.objects.filter(pk=application.pk).update(status=APPLICATION_STATUS_ACCEPTED)
            GigApplication.objects.filter(gig=gig).exclude(pk=application.pk).update(
                status=APPLICATION_STATUS_REJECTED
            )
        else:
            commit(gig)
            GigApplication.objects.filter(pk=application.pk).update(status=APPLICATION_STATUS_REJECTED)

    if action == 'accept':
        for sibling in gig.applications.all():
            sibling.status = APPLICATION_STATUS_REJECTED
        application.status = APPLICATION_STATUS_ACCEPTED
        logger.info(f"Gig {gig.pk} assigned to worker {application.worker_id} via application {application.pk}")
        notify(
            application.worker, 'application_accepted', 'Application Accepted',
            f"Your application for {gig.title} has been accepted!",
            sender=store, gig=gig, application_id=application.pk,
        )
    else:
        application.status = APPLICATION_STATUS_REJECTED
        logger.info(f"Application {application.pk} on gig {gig.pk} rejected")
        notify(
            application.worker, 'application_rejected', 'Application Rejected',
            f"Your application for {gig.title} was not selected.",
            sender=store, gig=gig, application_id=application.pk,
        )
    return application


@storage_guard
def start_gig(gig_id, worker):
    gig = get_gig(gig_id)
    _require_assigned_worker(gig, worker, 'start')
    if gig.status != GIG_STATUS_ASSIGNED:
        raise InvalidTransition("Gig must be assigned before starting.")

    commit(gig, status=GIG_STATUS_IN_PROGRESS, started_at=timezone.now())
    logger.info(f"Worker {worker.pk} started gig {gig.pk}")
    return gig


@storage_guard
def complete_gig(gig_id, worker):
    """Finish an in-progress gig and record its pending payment in the same transaction."""
    gig = get_gig(gig_id)
    _require_assigned_worker(gig, worker, 'complete')
    if gig.status != GIG_STATUS_IN_PROGRESS:
        raise InvalidTransition("Gig must be in progress to complete.")

    with transaction.atomic():
        commit(gig, status=GIG_STATUS_COMPLETED, completed_at=timezone.now())
        payment = record_payment(gig)

    logger.info(f"Worker {worker.pk} completed gig {gig.pk}, payment {payment.pk} recorded")
    notify(
        gig.store, 'gig_completed', 'Gig Completed',
        f"{worker.display_name} has completed the gig: {gig.title}",
        sender=worker, gig=gig,
    )
    return gig, payment


@storage_guard
def cancel_gig(gig_id, store, reason=''):
    gig = get_gig(gig_id)
    if gig.store_id != getattr(store, 'pk', None):
        raise Forbidden("Not authorized to cancel this gig.")
    if gig.status not in GIG_CANCELLABLE_STATUSES:
        raise InvalidTransition(f"A {gig.status} gig cannot be cancelled.")

    previous_worker = gig.worker
    with transaction.atomic():
        commit(
            gig, status=GIG_STATUS_CANCELLED, worker=None,
            cancelled_at=timezone.now(), cancellation_reason=reason or '',
        )
        GigApplication.objects.filter(gig=gig, status=APPLICATION_STATUS_PENDING).update(
            status=APPLICATION_STATUS_REJECTED
        )

    logger.info(f"Store {store.pk} cancelled gig {gig.pk}")
    if previous_worker is not None:
        notify(
            previous_worker, 'gig_cancelled', 'Gig Cancelled',
            f"The gig {gig.title} has been cancelled by the store.",
            sender=store, gig=gig,
        )
    return gig


@storage_guard
def add_review(gig_id, reviewer, rating, comment=''):
    gig = get_gig(gig_id)
    reviewer_id = getattr(reviewer, 'pk', None)
    if reviewer_id is not None and reviewer_id == gig.store_id:
        reviewee = gig.worker
    elif reviewer_id is not None and reviewer_id == gig.worker_id:
        reviewee = gig.store
    else:
        raise Forbidden("Only the store and the assigned worker can review this gig.")
    if gig.status != GIG_STATUS_COMPLETED:
        raise InvalidTransition("Reviews can only be left on completed gigs.")
    try:
        rating = int(rating)
    except (TypeError, ValueError):
        raise ValidationError("Rating must be a whole number.")
    if not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5.")

    try:
        with transaction.atomic():
            review = GigReview.objects.create(
                gig=gig, reviewer=reviewer, reviewee=reviewee, rating=rating, comment=comment or ''
            )
            reviewee.add_rating(rating)
    except IntegrityError:
        raise ConflictError("You have already reviewed this gig.")

    logger.info(f"User {reviewer_id} rated user {reviewee.pk} {rating}/5 on gig {gig.pk}")
    return review
