"""
tests/test_field_coercers.py

Pytest unit tests for cell coercion. Pure functions, no database.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from app.domain.entities import EVENT_TYPE_ALIASES, EVENT_TYPES
from app.validators.field_coercers import (
    Coerced,
    coerce_amount,
    coerce_boolean,
    coerce_choice,
    coerce_date,
    coerce_text,
    parse_date,
)

TODAY = date(2025, 6, 1)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2025-05-19", date(2025, 5, 19)),
        ("2025-05-19T10:30:00", date(2025, 5, 19)),
        ("19/05/2025", date(2025, 5, 19)),
        ("13/01/2025", date(2025, 1, 13)),
        ("05/06/2025", date(2025, 5, 6)),
        ("19-05-25", date(2025, 5, 19)),
        ("11 Jan 2025", date(2025, 1, 11)),
        ("1st March 2025", date(2025, 3, 1)),
        ("Jan 11, 2025", date(2025, 1, 11)),
        (" 2025-12-01 ", date(2025, 12, 1)),
    ],
)
def test_parse_date_accepts_export_formats(raw: str, expected: date) -> None:
    assert parse_date(raw) == expected


@pytest.mark.parametrize("raw", ["", "soon", "31/02/2025", "32 Jan 2025", "Foo 11, 2025"])
def test_parse_date_rejects_unknown_or_impossible_values(raw: str) -> None:
    assert parse_date(raw) is None


def test_blank_required_date_falls_back_to_today() -> None:
    result = coerce_date("", required=True, today=TODAY)

    assert result.value == TODAY
    assert result.defaulted is True


def test_unparseable_optional_date_is_none() -> None:
    result = coerce_date("next week", required=False, today=TODAY)

    assert result.value is None
    assert result.defaulted is True


def test_parsed_date_is_not_defaulted() -> None:
    result = coerce_date("11 Jan 2025", today=TODAY)

    assert result.value == date(2025, 1, 11)
    assert result.defaulted is False


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("$1,234.56", Decimal("1234.56")),
        ("£0", Decimal("0.00")),
        ("45", Decimal("45.00")),
        ('"45.00"', Decimal("45.00")),
        ("-12.5", Decimal("-12.50")),
        ("12.345", Decimal("12.35")),
    ],
)
def test_coerce_amount_strips_symbols_and_rounds_to_cents(raw: str, expected: Decimal) -> None:
    result = coerce_amount(raw)

    assert result.value == expected
    assert result.defaulted is False


@pytest.mark.parametrize("raw", ["", None, "abc", "1.2.3", "-", "1" * 30, "-" + "9" * 40])
def test_coerce_amount_defaults_to_zero(raw: str | None) -> None:
    result = coerce_amount(raw)

    assert result.value == Decimal("0.00")
    assert result.defaulted is True


def test_coerce_amount_uses_field_default_for_blank() -> None:
    result = coerce_amount("", default=Decimal("1"))

    assert result.value == Decimal("1")
    assert result.defaulted is True


# ---------------------------------------------------------------------------
# Booleans, text, choices
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [("Yes", True), ("true", True), ("1", True), ("no", False), ("Paid", False)],
)
def test_coerce_boolean(raw: str, expected: bool) -> None:
    assert coerce_boolean(raw).value is expected


def test_blank_boolean_is_false_and_defaulted() -> None:
    result = coerce_boolean("  ")

    assert result.value is False
    assert result.defaulted is True


def test_coerce_text_trims_and_optionally_unquotes() -> None:
    assert coerce_text("  Unicorn  ").value == "Unicorn"
    assert coerce_text('"Unicorn"').value == '"Unicorn"'
    assert coerce_text('"Unicorn"', quoted=True).value == "Unicorn"
    assert coerce_text("   ").value is None


def test_coerce_text_blank_uses_field_default() -> None:
    assert coerce_text("  ", default="").value == ""
    assert coerce_text(None, default="General") == Coerced("General", defaulted=True)
    assert coerce_text("Flour", default="General") == Coerced("Flour")


@pytest.mark.parametrize(
    "raw, expected, defaulted",
    [
        ("birthday", "Birthday", False),
        ("BABY SHOWER", "Baby Shower", False),
        ("babyshower", "Baby Shower", False),
        ("Retirement", "Other", True),
        ("", "Other", True),
    ],
)
def test_coerce_choice_normalizes_onto_vocabulary(raw: str, expected: str, defaulted: bool) -> None:
    result = coerce_choice(raw, choices=EVENT_TYPES, aliases=EVENT_TYPE_ALIASES, default="Other")

    assert result.value == expected
    assert result.defaulted is defaulted
