"""Fixtures shared by the test modules."""

from datetime import datetime
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
from panel_scheduler.core.clock import UTC, FixedClock  # noqa: E402
from panel_scheduler.storage import InMemoryStore  # noqa: E402
from panel_scheduler.storage.sql import SqlStore  # noqa: E402


@pytest.fixture
def clock():
    # Monday of the first campaign week, 08:30 local
    return FixedClock(datetime(2026, 1, 12, 3, 0, tzinfo=UTC))


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        yield InMemoryStore()
        return
    sql_store = SqlStore("sqlite:///:memory:")
    yield sql_store
    sql_store.close()


@pytest.fixture
def memory_store():
    return InMemoryStore()
