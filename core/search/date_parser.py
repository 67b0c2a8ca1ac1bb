# =============================================================================
# core/search/date_parser.py - Spreadsheet Date Normalization
# =============================================================================
# Uploaded sheets carry dates in whatever form the exporting system used.
# parse_date() turns a cell value into a calendar date, trying in order:
#
#   1. Strict textual layouts:
#        YYYY-MM-DD, MM/DD/YYYY, DD.MM.YYYY, M/D/YYYY, D.M.YYYY
#      Slash layouts are month-first, dot layouts are day-first.
#   2. Spreadsheet serial numbers in [2, 100000), epoch 1899-12-30.
#
# The serial epoch keeps the spreadsheet leap-year quirk: serial 1 is
# 1899-12-31 here (spreadsheets display 1900-01-01), and the two agree from
# serial 61 onwards. The upstream ingestion relies on this exact mapping.
#
# Anything else parses to None.
# =============================================================================

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Any

# (layout name, strict pattern, strptime format)
DATE_LAYOUTS: list[tuple[str, re.Pattern[str], str]] = [
    ("YYYY-MM-DD", re.compile(r"^\d{4}-\d{2}-\d{2}$"), "%Y-%m-%d"),
    ("MM/DD/YYYY", re.compile(r"^\d{2}/\d{2}/\d{4}$"), "%m/%d/%Y"),
    ("DD.MM.YYYY", re.compile(r"^\d{2}\.\d{2}\.\d{4}$"), "%d.%m.%Y"),
    ("M/D/YYYY", re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$"), "%m/%d/%Y"),
    ("D.M.YYYY", re.compile(r"^\d{1,2}\.\d{1,2}\.\d{4}$"), "%d.%m.%Y"),
]

EXCEL_EPOCH = datetime(1899, 12, 30)
SERIAL_MIN = 2
SERIAL_MAX = 100000  # exclusive


def excel_serial_to_datetime(serial: float) -> datetime:
    """
    Convert a spreadsheet serial number to a datetime.

    No range check: callers decide which serials are plausible.

    Example:
        excel_serial_to_datetime(45292)  # datetime(2024, 1, 1, 0, 0)
    """
    return EXCEL_EPOCH + timedelta(days=serial)


def excel_serial_to_date(serial: float) -> date:
    """Calendar date part of excel_serial_to_datetime()."""
    return excel_serial_to_datetime(serial).date()


def _as_serial(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _parse_text(text: str) -> datetime | None:
    for _name, pattern, fmt in DATE_LAYOUTS:
        if pattern.match(text):
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                # Layout matched but the calendar rejected it (e.g. 02/30/2024)
                continue
    return None


def parse_datetime(value: Any) -> datetime | None:
    """
    Normalize a cell value to a datetime, or None.

    datetime/date objects pass through (dates at midnight). Text dates are
    at midnight. Serials may carry a time-of-day fraction.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        parsed = _parse_text(text)
        if parsed is not None:
            return parsed

    serial = _as_serial(value)
    if serial is not None and SERIAL_MIN <= serial < SERIAL_MAX:
        return excel_serial_to_datetime(serial)

    return None


def parse_date(value: Any) -> date | None:
    """
    Normalize a cell value to a calendar date, or None.

    Example:
        parse_date("2024-06-18")   # date(2024, 6, 18)
        parse_date("18.6.2024")    # date(2024, 6, 18)
        parse_date("6/18/2024")    # date(2024, 6, 18)
        parse_date(45461)          # date(2024, 6, 18)
        parse_date("next week")    # None
    """
    parsed = parse_datetime(value)
    return parsed.date() if parsed is not None else None


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    """Last representable instant of a day; used for inclusive "to" bounds."""
    return datetime.combine(day, time.max)
