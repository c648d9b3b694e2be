"""CSV value normalization: handles BOM, trailing spaces, locale quirks."""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S", "%d.%m.%Y", "%d/%m/%Y")
_TRUE_VALUES = {"1", "true", "yes", "y", "tak", "t"}
_FALSE_VALUES = {"0", "false", "no", "n", "nie", "f"}


def normalize_column_name(name: str) -> str:
    """Normalize a CSV column name.

    - Removes BOM characters (\\ufeff)
    - Replaces runs of spaces / non-breaking spaces with a single underscore
    - Lowercases
    - Strips non-alphanumeric characters (except underscore)
    """
    name = name.replace("\ufeff", "").strip()
    name = re.sub(r"[\s\u00a0]+", "_", name)
    name = name.lower()
    return re.sub(r"[^\w]", "", name, flags=re.UNICODE)


def clean_string(value: str | None) -> str | None:
    """Strip whitespace and return None for empty strings."""
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def parse_decimal(value: str | None) -> Decimal | None:
    """Parse amounts like ``2 000,50`` or ``2000.50``."""
    value = clean_string(value)
    if value is None:
        return None
    value = value.replace("\u00a0", "").replace(" ", "").replace(",", ".")
    try:
        return Decimal(value)
    except InvalidOperation:
        return None


def parse_date(value: str | None) -> date | None:
    value = clean_string(value)
    if value is None:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def parse_bool(value: str | None, default: bool = True) -> bool:
    value = clean_string(value)
    if value is None:
        return default
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default


def parse_int(value: str | None) -> int | None:
    value = clean_string(value)
    if value is None:
        return None
    try:
        # handle "4", "4.0"
        return int(float(value.replace(",", ".")))
    except ValueError:
        return None
