"""Tests for date classification."""

from datetime import date

import pytest

from weatherchat.app.models import DateType
from weatherchat.app.orchestration.dates import classify_date, relative_date_hint

TODAY = date(2025, 6, 1)


@pytest.mark.parametrize("value", [None, "", "today", "now", "  Today ", "NOW"])
def test_current_words(value: str | None) -> None:
    result = classify_date(value, TODAY)
    assert result.date_type == DateType.current
    assert result.target_date is None


def test_tomorrow_is_forecast() -> None:
    result = classify_date("Tomorrow", TODAY)
    assert result.date_type == DateType.forecast
    assert result.target_date == date(2025, 6, 2)


def test_yesterday_is_historical() -> None:
    result = classify_date(" yesterday ", TODAY)
    assert result.date_type == DateType.historical
    assert result.target_date == date(2025, 5, 31)


def test_explicit_date_relative_to_today() -> None:
    """The same date is historical or forecast depending on today."""
    past = classify_date("2024-01-15", date(2025, 6, 1))
    assert past.date_type == DateType.historical
    assert past.target_date == date(2024, 1, 15)

    future = classify_date("2024-01-15", date(2023, 1, 1))
    assert future.date_type == DateType.forecast
    assert future.target_date == date(2024, 1, 15)


def test_explicit_today_is_forecast() -> None:
    result = classify_date("2025-06-01", TODAY)
    assert result.date_type == DateType.forecast
    assert result.target_date == TODAY


@pytest.mark.parametrize("value", ["2025-02-30", "2025-13-01", "01/15/2024", "next week", "2025-6-1"])
def test_unrecognized_falls_back_to_current(value: str) -> None:
    result = classify_date(value, TODAY)
    assert result.date_type == DateType.current
    assert result.target_date is None


@pytest.mark.parametrize(
    ("value", "expected"),
    [("Tomorrow", "tomorrow"), ("yesterday", "yesterday"), ("2025-06-02", None), (None, None)],
)
def test_relative_date_hint(value: str | None, expected: str | None) -> None:
    assert relative_date_hint(value) == expected
