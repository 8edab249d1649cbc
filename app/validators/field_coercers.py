"""
app/validators/field_coercers.py

String-to-canonical-value coercion for imported cells.

Coercers never raise. When a value cannot be parsed they return a documented
fallback and set `defaulted`, leaving the caller to decide whether a
defaulted value is acceptable for the field.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping, Sequence

CENTS = Decimal("0.01")
ZERO_AMOUNT = Decimal("0.00")

TRUE_VALUES = frozenset({"yes", "true", "1"})

MONTHS: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "sept": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:$|[T\s])")
_NUMERIC_DATE = re.compile(r"^(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{4}|\d{2})(?:$|\s)")
_DAY_MONTH_NAME = re.compile(r"^(\d{1,2})(?:st|nd|rd|th)?[\s\-]+([A-Za-z]{3,9})\.?,?[\s\-]+(\d{4}|\d{2})$")
_MONTH_NAME_DAY = re.compile(r"^([A-Za-z]{3,9})\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s+(\d{4}|\d{2})$")
_AMOUNT_NOISE = re.compile(r"[^0-9.\-]")


@dataclass(frozen=True)
class Coerced:
    """
    A coerced value and whether it came from a fallback.
    """

    value: Any
    defaulted: bool = False


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _expand_year(raw_year: str) -> int:
    year = int(raw_year)
    if len(raw_year) == 2:
        year += 2000
    return year


def _month_from_name(name: str) -> int | None:
    lowered = name.strip().lower().rstrip(".")
    if lowered in MONTHS:
        return MONTHS[lowered]
    return MONTHS.get(lowered[:3]) if len(lowered) > 3 else None


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(raw: str) -> date | None:
    """
    Parse the date forms seen in bakery exports. Returns None when none fit.

    For A/B/YYYY the first component is a day only when it exceeds 12;
    otherwise the value is read month-first.
    """

    text = raw.strip()
    if not text:
        return None

    match = _ISO_DATE.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    match = _NUMERIC_DATE.match(text)
    if match:
        first, second = int(match.group(1)), int(match.group(2))
        year = _expand_year(match.group(3))
        if first > 12:
            return _safe_date(year, second, first)
        return _safe_date(year, first, second)

    match = _DAY_MONTH_NAME.match(text)
    if match:
        month = _month_from_name(match.group(2))
        if month is None:
            return None
        return _safe_date(_expand_year(match.group(3)), month, int(match.group(1)))

    match = _MONTH_NAME_DAY.match(text)
    if match:
        month = _month_from_name(match.group(1))
        if month is None:
            return None
        return _safe_date(_expand_year(match.group(3)), month, int(match.group(2)))

    return None


def coerce_date(raw: str | None, *, required: bool = True, today: date | None = None) -> Coerced:
    """
    Coerce to a date. Unparseable or blank input yields today's date for
    required fields and None for optional ones; both are flagged defaulted.
    """

    parsed = parse_date(raw) if isinstance(raw, str) else None
    if parsed is not None:
        return Coerced(parsed)
    fallback = (today or date.today()) if required else None
    return Coerced(fallback, defaulted=True)


def coerce_amount(raw: str | None, *, default: Decimal = ZERO_AMOUNT) -> Coerced:
    """
    Coerce a currency string to Decimal with two places.

    Every character except digits, "." and a leading "-" is dropped, so
    symbols, thousands separators and stray quotes are ignored. Blank,
    unparseable or out-of-range input yields `default` (0.00), flagged
    defaulted.
    """

    if _is_blank(raw):
        return Coerced(default, defaulted=True)

    cleaned = _AMOUNT_NOISE.sub("", str(raw))
    negative = cleaned.startswith("-")
    digits = cleaned.replace("-", "")
    if not digits or digits == ".":
        return Coerced(default, defaulted=True)
    try:
        amount = Decimal(digits)
        if negative:
            amount = -amount
        # quantize raises once the digits exceed the context precision
        return Coerced(amount.quantize(CENTS, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return Coerced(default, defaulted=True)


def coerce_boolean(raw: str | None) -> Coerced:
    if _is_blank(raw):
        return Coerced(False, defaulted=True)
    return Coerced(str(raw).strip().lower() in TRUE_VALUES)


def coerce_text(raw: str | None, *, quoted: bool = False, default: str | None = None) -> Coerced:
    """
    Trim text. With `quoted`, one pair of surrounding quotes is removed.
    Blank input yields `default` (None unless the field names one).
    """

    if raw is None:
        return Coerced(default, defaulted=True)
    text = str(raw).strip()
    if quoted and len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        text = text[1:-1].strip()
    if not text:
        return Coerced(default, defaulted=True)
    return Coerced(text)


def coerce_choice(
    raw: str | None,
    *,
    choices: Sequence[str],
    aliases: Mapping[str, str] | None = None,
    default: str | None = None,
) -> Coerced:
    """
    Normalise a value onto a fixed vocabulary, case-insensitively.

    Alias keys are matched case-insensitively too. Anything else becomes
    `default`, flagged defaulted.
    """

    if _is_blank(raw):
        return Coerced(default, defaulted=True)

    lowered = str(raw).strip().lower()
    for choice in choices:
        if choice.lower() == lowered:
            return Coerced(choice)
    for alias, target in (aliases or {}).items():
        if alias.lower() == lowered:
            return Coerced(target)
    return Coerced(default, defaulted=True)
