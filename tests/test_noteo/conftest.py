"""Shared fixtures for the noteo test-suite."""

from datetime import datetime, timedelta, timezone

import pytest

from noteo import date

CEST = timezone(timedelta(hours=2))
NOW = datetime(2020, 9, 10, 16, 30, 11, tzinfo=CEST)


@pytest.fixture(autouse=True)
def _system_clock():
    yield
    date.set_now(None)


@pytest.fixture
def fixed_now() -> datetime:
    """Freeze ``noteo.date.now()`` at 2020-09-10 16:30:11 +02:00."""
    date.set_now(lambda: NOW)
    return NOW
