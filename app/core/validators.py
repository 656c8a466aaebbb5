"""
Shared field validators.

Every write path (single-record endpoints, spreadsheet imports, archive
imports and student login) normalizes roll numbers, dates, mobile numbers and
post codes through these functions. They raise ``ValueError`` so they can be
used directly inside pydantic validators.
"""

import re
from datetime import date, datetime
from pathlib import PurePosixPath
from typing import Any

from openpyxl.utils.datetime import from_excel

from app.models.student import PostCode

MIN_BIRTH_YEAR = 1900
MOBILE_LENGTH = 10
DATE_FORMAT_HINT = "DD/MM/YYYY or DD-MM-YYYY"

_NON_DIGITS = re.compile(r"\D")


def _integral_text(value: Any) -> str:
    """Render spreadsheet numbers without a trailing '.0'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def normalize_roll_number(value: Any) -> str:
    """Trim and uppercase a roll number."""
    if value is None or isinstance(value, bool):
        raise ValueError("Roll number is required")
    roll_number = _integral_text(value).strip().upper()
    if not roll_number:
        raise ValueError("Roll number is required")
    if "/" in roll_number or "\\" in roll_number:
        raise ValueError(f"Roll number cannot contain path separators: {roll_number}")
    return roll_number


def _checked_date(year: int, month: int, day: int, raw: Any) -> date:
    if not 1 <= day <= 31:
        raise ValueError(f"Invalid day in date: {raw}")
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month in date: {raw}")
    if year < MIN_BIRTH_YEAR:
        raise ValueError(f"Year must be {MIN_BIRTH_YEAR} or later: {raw}")
    try:
        return date(year, month, day)
    except ValueError:
        raise ValueError(f"Invalid date: {raw}")


def _parse_date_text(text: str) -> date:
    if "/" in text:
        delimiter = "/"
    elif "-" in text:
        delimiter = "-"
    else:
        raise ValueError(f"Date must be in {DATE_FORMAT_HINT} format: {text}")

    parts = [part.strip() for part in text.split(delimiter)]
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise ValueError(f"Date must be in {DATE_FORMAT_HINT} format: {text}")

    day_text, month_text, year_text = parts
    if len(day_text) > 2 or len(month_text) > 2 or len(year_text) != 4:
        raise ValueError(f"Date must be in {DATE_FORMAT_HINT} format: {text}")

    return _checked_date(int(year_text), int(month_text), int(day_text), text)


def _parse_date_serial(serial: int | float) -> date:
    try:
        converted = from_excel(serial)
    except (ValueError, OverflowError, TypeError):
        raise ValueError(f"Invalid spreadsheet date: {serial}")
    if converted is None:
        raise ValueError(f"Invalid spreadsheet date: {serial}")
    if isinstance(converted, datetime):
        converted = converted.date()
    if not isinstance(converted, date):
        # Serials below one day come back as a time of day
        raise ValueError(f"Invalid spreadsheet date: {serial}")
    return _checked_date(converted.year, converted.month, converted.day, serial)


def parse_date(value: Any) -> date:
    """
    Parse a calendar date.

    Accepts DD/MM/YYYY and DD-MM-YYYY text, spreadsheet date serials and
    date/datetime objects (time components are dropped). Impossible dates
    such as 30/02/2020 are rejected, never clamped.
    """
    if value is None or value == "":
        raise ValueError("Date is required")
    if isinstance(value, bool):
        raise ValueError(f"Invalid date: {value}")
    if isinstance(value, datetime):
        return _checked_date(value.year, value.month, value.day, value.date().isoformat())
    if isinstance(value, date):
        return _checked_date(value.year, value.month, value.day, value.isoformat())
    if isinstance(value, (int, float)):
        return _parse_date_serial(value)
    if isinstance(value, str):
        return _parse_date_text(value.strip())
    raise ValueError(f"Unsupported date value: {value!r}")


def digits_only(value: Any) -> str:
    """Strip every non-digit character."""
    if value is None:
        return ""
    return _NON_DIGITS.sub("", _integral_text(value))


def normalize_mobile(value: Any) -> str:
    """Coerce a mobile number to a 10 digit string."""
    if value is None or isinstance(value, bool):
        raise ValueError("Mobile number is required")
    digits = digits_only(value)
    if len(digits) != MOBILE_LENGTH:
        raise ValueError(f"Mobile number must be exactly {MOBILE_LENGTH} digits")
    return digits


def normalize_post_code(value: Any) -> PostCode:
    if isinstance(value, PostCode):
        return value
    text = str(value or "").strip().upper()
    try:
        return PostCode(text)
    except ValueError:
        allowed = ", ".join(post.value for post in PostCode)
        raise ValueError(f"Invalid post: {text or value!r}. Must be one of: {allowed}")


def file_extension(filename: str) -> str:
    return PurePosixPath(filename.replace("\\", "/")).suffix.lower()


def roll_number_from_filename(filename: str) -> str:
    """
    Derive the roll number from an uploaded file name.

    Directories are ignored and an underscore-delimited qualifier is dropped,
    so ``scans/7_ROLL123.jpg`` maps to ``ROLL123``. Post-code prefixes are
    passed through unchanged.
    """
    stem = PurePosixPath(filename.replace("\\", "/")).stem
    if "_" in stem:
        stem = stem.rsplit("_", 1)[-1]
    return normalize_roll_number(stem)
