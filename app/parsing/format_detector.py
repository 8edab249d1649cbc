"""
app/parsing/format_detector.py

Header layout detection for tokenized CSV rows.

Two layouts are recognised:
- standard CSV with the header on row 0;
- legacy "Bake Diary" exports, which either prepend two banner lines before
  the header, or (expense exports) carry no banner but a VAT signature
  header on row 0.
"""

from __future__ import annotations

import logging
from typing import Sequence

from app.config import DEFAULT_BANNER_MARKERS
from app.domain.errors import MalformedFileError
from app.domain.import_models import FormatTag, HeaderLayout

logger = logging.getLogger(__name__)

BANNER_SCAN_ROWS = 3
BANNER_HEADER_OFFSET = 2

SIGNATURE_COLUMNS: tuple[str, ...] = ("amount (incl vat)",)
SIGNATURE_COLUMN_PAIRS: tuple[tuple[str, str], ...] = (("vendor", "vat"),)


def _normalized_cells(row: Sequence[str]) -> set[str]:
    return {cell.strip().lower() for cell in row if cell and cell.strip()}


def has_signature_header(row: Sequence[str]) -> bool:
    """
    Return True when a row carries a column name unique to the banner-less
    expense export.
    """

    cells = _normalized_cells(row)
    if any(column in cells for column in SIGNATURE_COLUMNS):
        return True
    return any(first in cells and second in cells for first, second in SIGNATURE_COLUMN_PAIRS)


def find_banner_row(rows: Sequence[Sequence[str]], markers: Sequence[str]) -> int | None:
    lowered_markers = [marker.lower() for marker in markers if marker]
    for index, row in enumerate(rows[:BANNER_SCAN_ROWS]):
        for cell in row:
            text = cell.lower()
            if any(marker in text for marker in lowered_markers):
                return index
    return None


def detect_layout(
    rows: Sequence[Sequence[str]],
    *,
    banner_markers: Sequence[str] = DEFAULT_BANNER_MARKERS,
) -> HeaderLayout:
    """
    Locate the header row and return the layout for the whole file.

    A row-0 signature wins over a banner marker. Raises MalformedFileError
    when no usable header exists.
    """

    if len(rows) < 2:
        raise MalformedFileError(
            f"File has {len(rows)} non-empty line(s); a header row and at least one data row are required."
        )

    if has_signature_header(rows[0]):
        header_index = 0
        format_tag = FormatTag.BANNER_EXPORT
    else:
        banner_row = find_banner_row(rows, banner_markers)
        if banner_row is not None:
            header_index = banner_row + BANNER_HEADER_OFFSET
            format_tag = FormatTag.BANNER_EXPORT
        else:
            header_index = 0
            format_tag = FormatTag.STANDARD_CSV

    if header_index >= len(rows):
        raise MalformedFileError(
            f"Header expected on line {header_index + 1} but the file only has {len(rows)} line(s)."
        )

    column_names = tuple(cell.strip() for cell in rows[header_index])
    if not any(column_names):
        raise MalformedFileError(f"Header row on line {header_index + 1} is empty.")

    layout = HeaderLayout(
        header_row_index=header_index,
        column_names=column_names,
        format_tag=format_tag,
        suggested_entity_type=suggest_entity_type(column_names),
    )
    logger.debug(
        "Detected layout format=%s header_row=%s columns=%s suggested=%s",
        layout.format_tag,
        layout.header_row_index,
        len(layout.column_names),
        layout.suggested_entity_type,
    )
    return layout


def suggest_entity_type(column_names: Sequence[str]) -> str | None:
    """
    Guess the entity type from the header vocabulary. Returns None when the
    columns do not match any known export.
    """

    cells = _normalized_cells(column_names)

    if {"order number", "status", "event date"} <= cells:
        return "order"
    if {"quote number", "event date"} <= cells:
        return "quote"
    if "order number" in cells and cells & {"sell price", "cost price", "quantity", "qty"}:
        return "order_item"
    if cells & {"cost per unit", "pack cost"}:
        return "ingredient"
    if has_signature_header(column_names):
        return "expense"
    if ("vendor" in cells or "category" in cells) and any("amount" in cell for cell in cells):
        return "expense"
    if {"first name", "last name"} <= cells:
        return "contact"
    return None
