"""Shared fixtures."""

import pytest

from group_ledger.config import Settings
from group_ledger.db import Database
from group_ledger.service import LedgerService


@pytest.fixture
def settings(tmp_path):
    """Settings for the primary test account."""
    return Settings(
        database_path=tmp_path / "test.db",
        account_id="acct-john",
        account_email="john@test.com",
        account_name="John",
    )


@pytest.fixture
def db(settings):
    """Create a temporary database."""
    database = Database(settings.database_path)
    yield database
    database.close()


@pytest.fixture
def service(settings, db):
    """Create a LedgerService instance."""
    return LedgerService(settings, db)
