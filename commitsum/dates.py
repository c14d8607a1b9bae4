"""
Date range presets, parsing and validation.
"""

from datetime import date, datetime, timedelta

from commitsum.constants import (
    DATE_FORMAT,
    DATE_RANGE_SEPARATOR,
    PRESET_MONTH,
    PRESET_TODAY,
    PRESET_WEEK,
    PRESET_YESTERDAY,
)
from commitsum.errors import ValidationError
from commitsum.schemas import DateRange


def resolve_preset(preset: str, today: date) -> DateRange:
    """Returns the range a preset key denotes, relative to ``today``."""
    if preset == PRESET_YESTERDAY:
        yesterday = today - timedelta(days=1)
        return DateRange(start=yesterday, end=yesterday)
    if preset == PRESET_WEEK:
        return DateRange(start=today - timedelta(days=7), end=today)
    if preset == PRESET_MONTH:
        return DateRange(start=today - timedelta(days=30), end=today)
    if preset == PRESET_TODAY:
        return DateRange(start=today, end=today)
    raise ValueError(f"Unknown date range preset '{preset}'")


def _parse_day(value: str) -> date:
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValidationError("Invalid date format, please use YYYY-MM-DD") from None


def validate_date_range(start: date, end: date, today: date) -> DateRange:
    if start > end:
        raise ValidationError("Start date cannot be after end date")
    if end > today:
        raise ValidationError("Date cannot be in the future")
    return DateRange(start=start, end=end)


def parse_date_input(text: str, today: date) -> DateRange:
    """
    Parses the custom date input: either ``YYYY-MM-DD`` or
    ``YYYY-MM-DD..YYYY-MM-DD``. Raises ValidationError on bad or future dates.
    """
    value = (text or "").strip()
    if not value:
        raise ValidationError("Please enter a date (YYYY-MM-DD)")

    if DATE_RANGE_SEPARATOR in value:
        raw_start, _, raw_end = value.partition(DATE_RANGE_SEPARATOR)
        start, end = _parse_day(raw_start), _parse_day(raw_end)
    else:
        start = end = _parse_day(value)

    return validate_date_range(start, end, today)
