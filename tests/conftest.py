"""
Django setup shared by the test suite.

Tests run the example project against an in-memory SQLite database,
migrated once per session. Each test that touches the database runs inside
a transaction that is rolled back afterwards.

N+1 reporting is switched to raise mode with no changed-file list, so any
repeated query inside a view fails the test that triggered it.
"""

import os

import django
import pytest


def pytest_configure(config) -> None:
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    os.environ["DJANGO_SETTINGS_MODULE"] = "inventory_site.settings"
    os.environ["N_PLUS_ONE_RAISE"] = "1"
    for name in ("CHANGED_FILES", "CHANGED_FILES_GIT_BASE", "N_PLUS_ONE_ENABLED"):
        os.environ.pop(name, None)

    django.setup()

    from django.test.utils import setup_test_environment

    setup_test_environment()


@pytest.fixture(scope="session")
def _migrated() -> None:
    from django.core.management import call_command

    call_command("migrate", interactive=False, verbosity=0)


@pytest.fixture
def db(_migrated):
    from django.db import transaction

    with transaction.atomic():
        yield
        transaction.set_rollback(True)
