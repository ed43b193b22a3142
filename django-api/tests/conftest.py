"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone

import pytest
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from cohorts import models as orm


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def staff_user(django_user_model):
    return django_user_model.objects.create_user(
        username="admin", email="admin@example.com", password="secret", is_staff=True
    )


@pytest.fixture
def staff_client(staff_user) -> APIClient:
    """Client authenticated the way the editor is: a bearer token."""
    token = Token.objects.create(user=staff_user)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.key}")
    return client


@pytest.fixture
def workshop() -> orm.Workshop:
    return orm.Workshop.objects.create(title="Intro to Pottery", type="course")


@pytest.fixture
def make_cohort(workshop):
    def factory(**overrides) -> orm.Cohort:
        fields = {
            "workshop": workshop,
            "title": "Spring Pottery",
            "slug": f"spring-pottery-{orm.Cohort.objects.count()}",
            "start_at": datetime(2030, 3, 1, 8, 0, tzinfo=timezone.utc),
        }
        fields.update(overrides)
        return orm.Cohort.objects.create(**fields)

    return factory


@pytest.fixture
def cohort(make_cohort) -> orm.Cohort:
    return make_cohort()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()
