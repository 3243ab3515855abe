import itertools
import os

import pytest


os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.test")

import django  # noqa: E402

django.setup()


from django.contrib.auth import get_user_model  # noqa: E402
from rest_framework.test import APIClient  # noqa: E402

from apps.applications.models import Application, Customer  # noqa: E402
from apps.users.constants import UserRole as Roles  # noqa: E402
from apps.users.models import Profile  # noqa: E402


User = get_user_model()

_sequence = itertools.count(1)


@pytest.fixture
def profile_factory(db):
    def create_profile(role=Roles.USER, name=None, is_active=True, username=None, email=None):
        role = Roles(role)
        number = next(_sequence)
        username = username or f"{role.value}{number}"
        user = User.objects.create_user(
            username=username,
            email=email if email is not None else f"{username}@example.com",
            password="password123",
        )
        return Profile.objects.create(
            user=user,
            name=name or f"{role.label} {number}",
            role=role.value,
            is_active=is_active,
        )

    return create_profile


@pytest.fixture
def customer_factory(db):
    def create_customer(**overrides):
        number = next(_sequence)
        data = {
            "name": f"Customer {number}",
            "email": f"customer{number}@example.com",
            "mobile": "+971501234567",
            "company": f"Company {number} LLC",
            "license_type": Customer.LicenseType.FREEZONE,
            "jurisdiction": "DMCC",
        }
        data.update(overrides)
        return Customer.objects.create(**data)

    return create_customer


@pytest.fixture
def application_factory(db, profile_factory, customer_factory):
    def create_application(created_by=None, status="draft", customer=None, **overrides):
        created_by = created_by or profile_factory(role=Roles.USER)
        return Application.objects.create(
            customer=customer or customer_factory(),
            created_by=created_by,
            created_by_role=created_by.role,
            status=status,
            **overrides,
        )

    return create_application


@pytest.fixture
def api_client():
    return APIClient()
