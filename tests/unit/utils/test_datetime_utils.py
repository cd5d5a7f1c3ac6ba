"""
Tests for datetime utilities
"""

import pytest
import pytz
from datetime import datetime, timezone, timedelta

from utils.datetime_utils import (
    ensure_utc, format_wall_clock, parse_utc_iso, shift_hours, to_wall_clock, utc_now, utc_to_zone,
)


def test_utc_now_is_aware():
    assert utc_now().tzinfo == timezone.utc


def test_ensure_utc_naive_assumed_utc():
    assert ensure_utc(datetime(2024, 3, 1, 12, 0)).tzinfo == timezone.utc


def test_ensure_utc_converts_other_zones():
    eastern = datetime(2024, 3, 1, 7, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert ensure_utc(eastern) == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_to_wall_clock_drops_zone_and_microseconds():
    result = to_wall_clock(datetime(2024, 3, 1, 12, 0, 0, 750000, tzinfo=timezone.utc))
    assert result == datetime(2024, 3, 1, 12, 0, 0)
    assert result.tzinfo is None


def test_utc_to_zone():
    assert utc_to_zone(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc), 'Asia/Tokyo') == datetime(2024, 3, 1, 21, 0)


def test_utc_to_zone_unknown():
    with pytest.raises(pytz.UnknownTimeZoneError):
        utc_to_zone(datetime(2024, 3, 1, 12, 0), 'Nowhere/Special')


def test_shift_hours_crosses_midnight():
    assert shift_hours(datetime(2024, 3, 1, 2, 0, tzinfo=timezone.utc), -5) == datetime(2024, 2, 29, 21, 0)


def test_parse_utc_iso_zulu():
    assert parse_utc_iso('2024-03-01T12:00:00Z') == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_format_wall_clock():
    assert format_wall_clock(datetime(2024, 3, 1, 7, 0), '%m/%d/%Y %H:%M:%S') == '03/01/2024 07:00:00'
    assert format_wall_clock(None, '%m/%d/%Y') == ''
