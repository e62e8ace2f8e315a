from datetime import UTC, datetime, timedelta, timezone

import pytest
from sqlalchemy.dialects import sqlite

from src.domain.base import UTCDateTime, to_utc

dialect = sqlite.dialect()


def test_to_utc_keeps_aware_utc():
    value = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)

    assert to_utc(value) == value


def test_to_utc_converts_offset():
    value = datetime(2025, 3, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

    result = to_utc(value)

    assert result == datetime(2025, 3, 1, 12, 0, tzinfo=UTC)
    assert result.utcoffset() == timedelta(0)


def test_to_utc_naive_is_utc():
    """Test naive values are taken as UTC, never local time"""
    result = to_utc(datetime(2025, 3, 1, 12, 0))

    assert result == datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


def test_to_utc_epoch_seconds():
    assert to_utc(0) == datetime(1970, 1, 1, tzinfo=UTC)
    assert to_utc(1740830400.5) == datetime(2025, 3, 1, 12, 0, 0, 500000, tzinfo=UTC)


def test_to_utc_none():
    assert to_utc(None) is None


@pytest.mark.parametrize("value", [True, "2025-03-01T12:00:00Z", object()])
def test_to_utc_rejects_other_types(value):
    with pytest.raises(TypeError):
        to_utc(value)


def test_column_stores_naive_utc():
    column = UTCDateTime()
    value = datetime(2025, 3, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

    stored = column.process_bind_param(value, dialect)

    assert stored == datetime(2025, 3, 1, 12, 0)
    assert stored.tzinfo is None


def test_column_loads_aware_utc():
    column = UTCDateTime()

    loaded = column.process_result_value(datetime(2025, 3, 1, 12, 0), dialect)

    assert loaded == datetime(2025, 3, 1, 12, 0, tzinfo=UTC)
    assert loaded.tzinfo is not None


def test_column_passes_none():
    column = UTCDateTime()

    assert column.process_bind_param(None, dialect) is None
    assert column.process_result_value(None, dialect) is None
