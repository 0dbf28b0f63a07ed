"""Shared fixtures: users of each role, gig factory and API clients."""

import itertools
from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from apps.gigs.store import create_gig

User = get_user_model()


def gig_fields(**overrides):
    """Valid create_gig keyword arguments: a 3 hour retail shift in Pune at 100/h."""
    start = timezone.now().replace(microsecond=0) + timedelta(days=1)
    fields = {
        'title': 'Weekend shelf restocking',
        'description': 'Restock shelves and tidy aisles during the weekend rush.',
        'category': 'retail',
        'address': '12 FC Road',
        'city': 'Pune',
        'state': 'Maharashtra',
        'pincode': '411004',
        'start_time': start,
        'end_time': start + timedelta(hours=3),
        'hourly_rate': Decimal('100'),
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(user_type='worker', **extra):
        username = extra.pop('username', f"{user_type}{next(counter)}")
        extra.setdefault('email', f"{username}@example.com")
        return User.objects.create_user(username=username, password='pass12345', user_type=user_type, **extra)
    return _make


@pytest.fixture
def store(make_user):
    return make_user('store', business_name='Corner Mart', city='Pune')


@pytest.fixture
def worker(make_user):
    return make_user('worker', full_name='Asha Patil', city='Pune')


@pytest.fixture
def make_gig(store):
    def _make(owner=None, **overrides):
        return create_gig(owner or store, **gig_fields(**overrides))
    return _make


@pytest.fixture
def gig(make_gig):
    return make_gig()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    """Return an APIClient authenticated as the given user."""
    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client
