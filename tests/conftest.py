"""
Test configuration for rewards server.
"""
import os

import django
import pytest


def pytest_configure():
    """Configure Django settings for testing."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'rewards_server.settings.test')
    os.environ.setdefault('ENVIRONMENT', 'test')
    django.setup()


@pytest.fixture(autouse=True)
def clear_cache():
    """Ledger totals are cached per user id; ids repeat between rolled back tests."""
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def user_factory():
    """Factory for creating test users."""
    from tests.factories import UserFactory
    return UserFactory


@pytest.fixture
def user():
    from tests.factories import UserFactory
    return UserFactory()


@pytest.fixture
def staff_user():
    from tests.factories import UserFactory
    return UserFactory(is_staff=True)


@pytest.fixture
def pending_user():
    """User whose registration is still under review."""
    from tests.factories import UserFactory
    return UserFactory(registration_status='awaiting_review')


@pytest.fixture
def ledger_store():
    from apps.points.services import LedgerStore
    return LedgerStore()


@pytest.fixture
def registry():
    """Registry with the default realization and invoice domains."""
    from apps.points.domains import DomainRegistry
    return DomainRegistry.from_settings({
        'realization': {
            'display_name': 'Realization',
            'calculation_rule': 'fixed_value',
            'default_points': 2500,
            'trigger_events': ['finalized'],
        },
        'invoice': {
            'display_name': 'Invoice',
            'calculation_rule': 'floor_division',
            'divisor': 10,
            'valuation_field': 'raw_valuation',
            'field_backend': 'column',
            'trigger_events': ['finalized', 'valuation_settled'],
        },
    })


@pytest.fixture
def realization_engine(registry, ledger_store):
    from apps.points.services import build_awarding_engine
    return build_awarding_engine(registry.get('realization'), ledger_store=ledger_store)


@pytest.fixture
def invoice_engine(registry, ledger_store):
    from apps.points.services import build_awarding_engine
    return build_awarding_engine(registry.get('invoice'), ledger_store=ledger_store)


@pytest.fixture
def api_client():
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def authenticated_client(api_client, user):
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def staff_client(api_client, staff_user):
    api_client.force_authenticate(user=staff_user)
    return api_client
