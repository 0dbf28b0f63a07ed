"""Tests for the gig state machine: applications, assignment, execution and completion."""

from decimal import Decimal
from unittest import mock

import pytest
from django.db import OperationalError

from apps.gigs.lifecycle import (
    add_review, apply_for_gig, cancel_gig, complete_gig, list_my_gigs, resolve_application, start_gig,
)
from apps.gigs.models import Gig, GigApplication
from apps.gigs.store import get_gig
from apps.notifications.models import Notification
from apps.payments.models import Payment
from core.exceptions import (
    ApplicationLimitReached, ConflictError, DuplicateApplication, Forbidden, InvalidTransition, NotFound,
    StorageUnavailable, ValidationError,
)


@pytest.fixture
def assigned_gig(gig, store, worker):
    application = apply_for_gig(gig.pk, worker)
    resolve_application(gig.pk, application.pk, store, 'accept')
    return get_gig(gig.pk)


@pytest.fixture
def started_gig(assigned_gig, worker):
    return start_gig(assigned_gig.pk, worker)


@pytest.mark.django_db
class TestApplyForGig:
    """Test workers applying to open gigs."""

    def test_creates_pending_application(self, gig, worker):
        application = apply_for_gig(gig.pk, worker, '  Available all weekend  ')
        assert application.status == 'pending'
        assert application.message == 'Available all weekend'
        assert application.worker == worker
        assert Gig.objects.get(pk=gig.pk).status == 'open'

    def test_notifies_store(self, gig, store, worker):
        application = apply_for_gig(gig.pk, worker)
        notification = Notification.objects.get(recipient=store)
        assert notification.type == 'application_received'
        assert notification.sender == worker
        assert notification.gig_id == gig.pk
        assert notification.application_id == application.pk

    def test_duplicate_application(self, gig, worker):
        apply_for_gig(gig.pk, worker)
        with pytest.raises(DuplicateApplication):
            apply_for_gig(gig.pk, worker)
        assert GigApplication.objects.filter(gig=gig).count() == 1

    def test_application_limit(self, make_gig, make_user):
        gig = make_gig(max_applications=2)
        apply_for_gig(gig.pk, make_user('worker'))
        apply_for_gig(gig.pk, make_user('worker'))
        with pytest.raises(ApplicationLimitReached):
            apply_for_gig(gig.pk, make_user('worker'))

    def test_rejected_applications_still_count(self, make_gig, make_user, store):
        gig = make_gig(max_applications=1)
        application = apply_for_gig(gig.pk, make_user('worker'))
        resolve_application(gig.pk, application.pk, store, 'reject')
        with pytest.raises(ApplicationLimitReached):
            apply_for_gig(gig.pk, make_user('worker'))

    def test_stores_cannot_apply(self, gig, make_user):
        with pytest.raises(Forbidden):
            apply_for_gig(gig.pk, make_user('store'))

    def test_gig_must_be_open(self, assigned_gig, make_user):
        with pytest.raises(InvalidTransition):
            apply_for_gig(assigned_gig.pk, make_user('worker'))

    def test_message_length(self, gig, worker):
        with pytest.raises(ValidationError):
            apply_for_gig(gig.pk, worker, 'x' * 501)

    def test_missing_gig(self, worker):
        with pytest.raises(NotFound):
            apply_for_gig(424242, worker)

    def test_storage_failure_is_typed(self, gig, worker):
        with mock.patch('apps.gigs.lifecycle.get_gig', side_effect=OperationalError('database is locked')):
            with pytest.raises(StorageUnavailable):
                apply_for_gig(gig.pk, worker)


@pytest.mark.django_db
class TestResolveApplication:
    """Test stores accepting and rejecting applications."""

    def test_accept_assigns_and_rejects_siblings(self, gig, store, make_user):
        workers = [make_user('worker') for _ in range(4)]
        applications = [apply_for_gig(gig.pk, w) for w in workers]

        accepted = resolve_application(gig.pk, applications[1].pk, store, 'accept')

        assert accepted.status == 'accepted'
        statuses = list(GigApplication.objects.filter(gig=gig).values_list('status', flat=True))
        assert statuses.count('accepted') == 1
        assert statuses.count('rejected') == 3
        stored = Gig.objects.get(pk=gig.pk)
        assert stored.status == 'assigned'
        assert stored.worker == workers[1]
        assert stored.assigned_at is not None

    def test_accept_notifies_worker(self, gig, store, worker):
        application = apply_for_gig(gig.pk, worker)
        resolve_application(gig.pk, application.pk, store, 'accept')
        notification = Notification.objects.get(recipient=worker)
        assert notification.type == 'application_accepted'

    def test_reject_touches_only_that_application(self, gig, store, make_user):
        first = apply_for_gig(gig.pk, make_user('worker'))
        second = apply_for_gig(gig.pk, make_user('worker'))

        rejected = resolve_application(gig.pk, first.pk, store, 'reject')

        assert rejected.status == 'rejected'
        assert GigApplication.objects.get(pk=second.pk).status == 'pending'
        stored = Gig.objects.get(pk=gig.pk)
        assert stored.status == 'open'
        assert stored.worker is None
        assert Notification.objects.get(recipient=first.worker).type == 'application_rejected'

    def test_only_owner_can_resolve(self, gig, worker, make_user):
        application = apply_for_gig(gig.pk, worker)
        with pytest.raises(Forbidden):
            resolve_application(gig.pk, application.pk, make_user('store'), 'accept')

    def test_unknown_application(self, gig, store):
        with pytest.raises(NotFound):
            resolve_application(gig.pk, 987654, store, 'accept')

    def test_application_of_another_gig(self, make_gig, store, worker):
        first = make_gig()
        second = make_gig()
        application = apply_for_gig(first.pk, worker)
        with pytest.raises(NotFound):
            resolve_application(second.pk, application.pk, store, 'accept')

    def test_invalid_action(self, gig, store, worker):
        application = apply_for_gig(gig.pk, worker)
        with pytest.raises(ValidationError):
            resolve_application(gig.pk, application.pk, store, 'maybe')

    def test_re_resolving_is_a_conflict(self, gig, store, worker):
        application = apply_for_gig(gig.pk, worker)
        resolve_application(gig.pk, application.pk, store, 'reject')
        with pytest.raises(ConflictError):
            resolve_application(gig.pk, application.pk, store, 'reject')
        with pytest.raises(ConflictError):
            resolve_application(gig.pk, application.pk, store, 'accept')

    def test_no_resolution_after_assignment(self, gig, store, make_user):
        first = apply_for_gig(gig.pk, make_user('worker'))
        second = apply_for_gig(gig.pk, make_user('worker'))
        resolve_application(gig.pk, first.pk, store, 'accept')
        with pytest.raises(InvalidTransition):
            resolve_application(gig.pk, second.pk, store, 'accept')

    def test_concurrent_accepts_only_one_wins(self, gig, store, make_user):
        first = apply_for_gig(gig.pk, make_user('worker'))
        second = apply_for_gig(gig.pk, make_user('worker'))
        # Both requests read the gig before either writes
        snapshots = [get_gig(gig.pk), get_gig(gig.pk)]

        with mock.patch('apps.gigs.lifecycle.get_gig', side_effect=snapshots):
            resolve_application(gig.pk, first.pk, store, 'accept')
            with pytest.raises(InvalidTransition):
                resolve_application(gig.pk, second.pk, store, 'accept')

        stored = Gig.objects.get(pk=gig.pk)
        assert stored.status == 'assigned'
        assert stored.worker_id == first.worker_id
        assert GigApplication.objects.get(pk=first.pk).status == 'accepted'
        assert GigApplication.objects.get(pk=second.pk).status == 'rejected'
        assert Notification.objects.filter(type='application_accepted').count() == 1

    def test_concurrent_apply_and_accept(self, gig, store, worker, make_user):
        application = apply_for_gig(gig.pk, worker)
        late_snapshot = get_gig(gig.pk)
        resolve_application(gig.pk, application.pk, store, 'accept')

        late_worker = make_user('worker')
        with mock.patch('apps.gigs.lifecycle.get_gig', return_value=late_snapshot):
            with pytest.raises(InvalidTransition):
                apply_for_gig(gig.pk, late_worker)
        assert not GigApplication.objects.filter(worker=late_worker).exists()


@pytest.mark.django_db
class TestStartAndComplete:
    """Test the assigned worker moving the gig forward."""

    def test_start(self, assigned_gig, worker):
        gig = start_gig(assigned_gig.pk, worker)
        assert gig.status == 'in-progress'
        assert Gig.objects.get(pk=gig.pk).started_at is not None

    def test_start_requires_assignment(self, gig, worker):
        # No worker is assigned yet, so nobody may start it
        with pytest.raises(Forbidden):
            start_gig(gig.pk, worker)

    def test_start_twice(self, started_gig, worker):
        with pytest.raises(InvalidTransition):
            start_gig(started_gig.pk, worker)

    def test_other_worker_cannot_start(self, assigned_gig, make_user):
        with pytest.raises(Forbidden):
            start_gig(assigned_gig.pk, make_user('worker'))

    def test_complete_requires_in_progress(self, assigned_gig, worker):
        with pytest.raises(InvalidTransition):
            complete_gig(assigned_gig.pk, worker)
        assert not Payment.objects.exists()

    def test_complete_records_payment(self, started_gig, worker, store):
        gig, payment = complete_gig(started_gig.pk, worker)
        assert gig.status == 'completed'
        assert gig.completed_at is not None
        assert payment.amount == gig.total_amount
        assert payment.platform_fee == Decimal('30.00')
        assert payment.worker_amount == Decimal('270.00')
        assert payment.status == 'pending'
        assert payment.store == store
        assert payment.worker == worker
        assert Notification.objects.filter(recipient=store, type='gig_completed').exists()

    def test_complete_twice(self, started_gig, worker):
        complete_gig(started_gig.pk, worker)
        with pytest.raises(InvalidTransition):
            complete_gig(started_gig.pk, worker)
        assert Payment.objects.count() == 1

    def test_failed_payment_rolls_back_completion(self, started_gig, worker):
        with mock.patch('apps.gigs.lifecycle.record_payment', side_effect=RuntimeError('ledger down')):
            with pytest.raises(RuntimeError):
                complete_gig(started_gig.pk, worker)
        assert Gig.objects.get(pk=started_gig.pk).status == 'in-progress'

    def test_full_scenario(self, make_gig, store, make_user):
        gig = make_gig(hourly_rate=Decimal('100'))
        assert gig.duration == Decimal('3.00')
        assert gig.total_amount == Decimal('300.00')

        worker_a, worker_b, worker_c = (make_user('worker') for _ in range(3))
        app_a = apply_for_gig(gig.pk, worker_a)
        app_b = apply_for_gig(gig.pk, worker_b)
        app_c = apply_for_gig(gig.pk, worker_c)

        resolve_application(gig.pk, app_b.pk, store, 'accept')
        assert GigApplication.objects.get(pk=app_a.pk).status == 'rejected'
        assert GigApplication.objects.get(pk=app_c.pk).status == 'rejected'
        stored = Gig.objects.get(pk=gig.pk)
        assert stored.worker == worker_b
        assert stored.status == 'assigned'

        assert start_gig(gig.pk, worker_b).status == 'in-progress'
        completed, payment = complete_gig(gig.pk, worker_b)
        assert completed.status == 'completed'
        assert payment.amount == Decimal('300.00')
        assert payment.platform_fee == Decimal('30.00')
        assert payment.worker_amount == Decimal('270.00')


@pytest.mark.django_db
class TestCancelGig:
    """Test stores withdrawing gigs."""

    def test_cancel_open_gig(self, gig, store, worker):
        application = apply_for_gig(gig.pk, worker)
        cancelled = cancel_gig(gig.pk, store, 'Shop closed for renovation')
        assert cancelled.status == 'cancelled'
        stored = Gig.objects.get(pk=gig.pk)
        assert stored.cancellation_reason == 'Shop closed for renovation'
        assert stored.cancelled_at is not None
        assert GigApplication.objects.get(pk=application.pk).status == 'rejected'

    def test_cancel_assigned_gig_releases_worker(self, assigned_gig, store, worker):
        cancel_gig(assigned_gig.pk, store)
        stored = Gig.objects.get(pk=assigned_gig.pk)
        assert stored.status == 'cancelled'
        assert stored.worker is None
        assert Notification.objects.filter(recipient=worker, type='gig_cancelled').exists()

    def test_cannot_cancel_started_gig(self, started_gig, store):
        with pytest.raises(InvalidTransition):
            cancel_gig(started_gig.pk, store)

    def test_cancelled_is_terminal(self, gig, store):
        cancel_gig(gig.pk, store)
        with pytest.raises(InvalidTransition):
            cancel_gig(gig.pk, store)

    def test_only_owner_can_cancel(self, gig, make_user):
        with pytest.raises(Forbidden):
            cancel_gig(gig.pk, make_user('store'))


@pytest.mark.django_db
class TestListMyGigs:
    """Test per-role gig listings."""

    def test_store_sees_posted_gigs(self, make_gig, store, make_user):
        make_gig()
        make_gig()
        make_gig(owner=make_user('store'))
        items, total = list_my_gigs(store)
        assert total == 2
        assert all(item.store_id == store.pk for item in items)

    def test_worker_sees_assigned_gigs(self, assigned_gig, make_gig, worker):
        make_gig()
        items, total = list_my_gigs(worker)
        assert total == 1
        assert items[0].pk == assigned_gig.pk

    def test_status_filter(self, started_gig, make_gig, store):
        make_gig()
        items, total = list_my_gigs(store, status='in-progress')
        assert total == 1
        assert items[0].pk == started_gig.pk

    def test_other_roles_are_rejected(self, make_user):
        with pytest.raises(Forbidden):
            list_my_gigs(make_user('admin'))


@pytest.mark.django_db
class TestAddReview:
    """Test ratings left after completion."""

    @pytest.fixture
    def completed_gig(self, started_gig, worker):
        gig, _ = complete_gig(started_gig.pk, worker)
        return gig

    def test_store_rates_worker(self, completed_gig, store, worker):
        review = add_review(completed_gig.pk, store, 4, 'Punctual and careful')
        assert review.reviewee == worker
        worker.refresh_from_db()
        assert worker.rating == Decimal('4.00')
        assert worker.total_ratings == 1

    def test_worker_rates_store(self, completed_gig, store, worker):
        add_review(completed_gig.pk, worker, 5)
        store.refresh_from_db()
        assert store.rating == Decimal('5.00')

    def test_one_review_per_reviewer(self, completed_gig, store):
        add_review(completed_gig.pk, store, 4)
        with pytest.raises(ConflictError):
            add_review(completed_gig.pk, store, 2)

    def test_gig_must_be_completed(self, started_gig, store):
        with pytest.raises(InvalidTransition):
            add_review(started_gig.pk, store, 4)

    def test_outsiders_cannot_review(self, completed_gig, make_user):
        with pytest.raises(Forbidden):
            add_review(completed_gig.pk, make_user('worker'), 4)

    @pytest.mark.parametrize('rating', [0, 6, 'five'])
    def test_rating_range(self, completed_gig, store, rating):
        with pytest.raises(ValidationError):
            add_review(completed_gig.pk, store, rating)
