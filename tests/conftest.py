"""
Shared test setup.

The settings module validates the environment at import time, so the
required variables are seeded here before any handler module is imported.
"""
import os

os.environ.setdefault("BOT_TOKEN", "123456:test-token")
os.environ.setdefault("SUPERADMINS", "1000")
os.environ.setdefault("API_BASE_URL", "http://attestation.test")
os.environ.setdefault("API_TOKEN", "service-token")

import pytest  # noqa: E402

from attestation_bot.services.models import Caller, Role  # noqa: E402
from tests.factories import NOW  # noqa: E402


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def admin():
    return Caller(role=Role.ADMIN, email="admin@example.com")


@pytest.fixture
def coordinator():
    return Caller(role=Role.ATTESTATION_COORDINATOR, email="coord@example.com")


@pytest.fixture
def manager():
    return Caller(role=Role.MANAGER, email="Boss@Example.com")


@pytest.fixture
def employee():
    return Caller(role=Role.EMPLOYEE, email="someone@example.com")
