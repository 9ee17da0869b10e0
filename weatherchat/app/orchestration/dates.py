"""Date classification for weather lookups (pure, no I/O)."""

import re
from datetime import date, timedelta

from weatherchat.app.models.common import DateType
from weatherchat.app.models.weather import DateClassification

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

RELATIVE_DATE_WORDS = {"today", "now", "tomorrow", "yesterday"}


def classify_date(value: str | None, today: date) -> DateClassification:
    """Classify a requested date relative to `today`.

    - missing, "today", "now": current, no target date
    - "tomorrow": forecast for today + 1
    - "yesterday": historical for today - 1
    - strict YYYY-MM-DD: historical if before today, else forecast
    - anything else (including impossible calendar dates): current
    """
    normalized = (value or "today").strip().lower()

    if normalized in ("today", "now", ""):
        return DateClassification(date_type=DateType.current)

    if normalized == "tomorrow":
        return DateClassification(date_type=DateType.forecast, target_date=today + timedelta(days=1))

    if normalized == "yesterday":
        return DateClassification(
            date_type=DateType.historical, target_date=today - timedelta(days=1)
        )

    if _ISO_DATE.match(normalized):
        try:
            target = date.fromisoformat(normalized)
        except ValueError:
            return DateClassification(date_type=DateType.current)
        date_type = DateType.historical if target < today else DateType.forecast
        return DateClassification(date_type=date_type, target_date=target)

    return DateClassification(date_type=DateType.current)


def relative_date_hint(value: str | None) -> str | None:
    """The relative word the user's date was expressed with, if any."""
    if value is None:
        return None
    normalized = value.strip().lower()
    return normalized if normalized in RELATIVE_DATE_WORDS else None
