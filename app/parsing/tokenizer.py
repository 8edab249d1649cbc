"""
app/parsing/tokenizer.py

Split raw delimited text into rows of string cells.
"""

from __future__ import annotations

import csv
import logging

from app.logging_utils import log_event

logger = logging.getLogger(__name__)

_UTF8_BOM = "\ufeff"


def _decode(raw: str | bytes) -> str:
    if isinstance(raw, bytes):
        text = raw.decode("utf-8", errors="replace")
    else:
        text = raw
    if text.startswith(_UTF8_BOM):
        text = text[len(_UTF8_BOM):]
    return text.replace("\x00", "")


def tokenize(raw: str | bytes, delimiter: str = ",") -> list[list[str]]:
    """
    Tokenize CSV text into rows.

    Quoted fields may hold the delimiter and line breaks, and a doubled quote
    inside a quoted field is one literal quote. Lines that are empty or only
    whitespace are dropped before splitting. An unterminated quote runs to the
    end of the input. Never raises: on a parser error the rows read so far
    are returned.
    """

    text = _decode(raw)
    lines = [line for line in text.splitlines(keepends=True) if line.strip()]
    if not lines:
        return []

    rows: list[list[str]] = []
    reader = csv.reader(lines, delimiter=delimiter, strict=False)
    try:
        for row in reader:
            rows.append(row)
    except csv.Error as exc:
        log_event(
            logger,
            logging.WARNING,
            "csv_tokenize_error",
            line=reader.line_num,
            rows_parsed=len(rows),
            error=str(exc),
        )
    return rows
