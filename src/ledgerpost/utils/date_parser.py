"""Date parsing utilities."""

import re
from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

ISO_PREFIX = re.compile(r"^\d{4}-")


def _financial_year_start(today: date) -> date:
    """First day of the Indian financial year (1 April) containing today."""
    year = today.year if today.month >= 4 else today.year - 1
    return date(year, 4, 1)


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "15 Jan 2024") and relative ones:
    "today", "yesterday", "tomorrow", "this/last/next month", "this/last/next
    week" and "this/last financial year" (April to March). Day-first numeric
    dates such as "15/01/2024" are read the Indian way.

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "next month": (today + relativedelta(months=1)).replace(day=1),
        "this week": today - timedelta(days=today.weekday()),
        "last week": today - timedelta(days=today.weekday() + 7),
        "next week": today + timedelta(days=7 - today.weekday()),
        "this financial year": _financial_year_start(today),
        "last financial year": _financial_year_start(today) - relativedelta(years=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        # ISO dates are year-first; other numeric dates are day-first
        dayfirst = not ISO_PREFIX.match(date_str)
        return date_parser.parse(date_str, dayfirst=dayfirst).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}") from None
