"""Tests for CSV normalizer functions."""

from datetime import date
from decimal import Decimal

import pytest

from tms_core.adapters.csv_loader.normalizer import (
    clean_string,
    normalize_column_name,
    parse_bool,
    parse_date,
    parse_decimal,
    parse_int,
)

# ─── normalize_column_name ───────────────────────────────────────────


def test_strip_trailing_spaces():
    assert normalize_column_name("  Waluta  ") == "waluta"


def test_remove_bom():
    assert normalize_column_name("\ufeffid") == "id"


def test_replace_spaces_with_underscore():
    assert normalize_column_name("Loading date") == "loading_date"


def test_non_breaking_space():
    assert normalize_column_name("Cena\u00a0netto") == "cena_netto"


def test_punctuation_removed():
    assert normalize_column_name("Price (net)") == "price_net"


def test_bom_plus_trailing_space():
    """Combined BOM + trailing spaces (common in spreadsheet exports)."""
    assert normalize_column_name("\ufeff  Order number  ") == "order_number"


# ─── clean_string ────────────────────────────────────────────────────


def test_clean_string_strips():
    assert clean_string("  hello  ") == "hello"


def test_clean_string_empty_to_none():
    assert clean_string("   ") is None
    assert clean_string("") is None
    assert clean_string(None) is None


# ─── value parsers ───────────────────────────────────────────────────


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2000.50", Decimal("2000.50")),
        ("2000,50", Decimal("2000.50")),
        ("2 000,50", Decimal("2000.50")),
        ("2\u00a0000", Decimal("2000")),
        ("", None),
        (None, None),
        ("n/a", None),
    ],
)
def test_parse_decimal(raw, expected):
    assert parse_decimal(raw) == expected


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2026-01-05", date(2026, 1, 5)),
        ("05.01.2026", date(2026, 1, 5)),
        ("05/01/2026", date(2026, 1, 5)),
        ("2026-01-05 08:30", date(2026, 1, 5)),
        ("tomorrow", None),
        ("", None),
    ],
)
def test_parse_date(raw, expected):
    assert parse_date(raw) == expected


def test_parse_bool():
    assert parse_bool("tak") is True
    assert parse_bool("0") is False
    assert parse_bool("FALSE") is False
    assert parse_bool(None) is True
    assert parse_bool("maybe", default=False) is False


def test_parse_int():
    assert parse_int("4") == 4
    assert parse_int("4.0") == 4
    assert parse_int("x") is None
    assert parse_int("") is None
