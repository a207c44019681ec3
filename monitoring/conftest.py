"""
Shared pytest fixtures for monitoring tests.
"""
from datetime import date, datetime

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from monitoring.config import MonitoringConfig
from monitoring.records import Batch


@pytest.fixture(autouse=True)
def clear_cache():
    """Clear cache before and after each test to prevent pollution."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """API client for making requests."""
    return APIClient()


@pytest.fixture
def farm_manager(django_user_model):
    """Create a farm manager user."""
    return django_user_model.objects.create_user(
        username='farm_manager',
        email='manager@test.com',
        password='testpass123',
    )


@pytest.fixture
def auth_client(api_client, farm_manager):
    """API client logged in as the farm manager."""
    api_client.force_authenticate(user=farm_manager)
    return api_client


@pytest.fixture
def config():
    """Default thresholds, independent of settings.MONITORING."""
    return MonitoringConfig()


@pytest.fixture
def now():
    """Fixed reference time: 15 June 2024, noon local time."""
    return timezone.make_aware(datetime(2024, 6, 15, 12, 0))


@pytest.fixture
def today(now):
    return timezone.localdate(now)


@pytest.fixture
def broiler_batch():
    return Batch(
        id='B-001',
        species='broiler',
        livestock_type='poultry',
        current_quantity=1000,
        initial_quantity=1000,
        acquisition_date=date(2024, 5, 1),
        label='Broilers - Pen 1',
    )


@pytest.fixture
def catfish_batch():
    return Batch(
        id='F-001',
        species='catfish',
        livestock_type='fish',
        current_quantity=2000,
        initial_quantity=2000,
        acquisition_date=date(2024, 4, 1),
        label='Catfish - Pond A',
    )
