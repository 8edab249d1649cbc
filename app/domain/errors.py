"""
app/domain/errors.py

Import error taxonomy.

StructuralError aborts a batch before any row runs. RowError subclasses are
caught at the row boundary and become ImportFailure outcomes.
"""

from __future__ import annotations

from typing import Any, Sequence


class StructuralError(ValueError):
    """
    Raised when the file itself cannot be read as a table.
    """

    code = "structural_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class MalformedFileError(StructuralError):
    """
    Raised when no usable header row can be located.
    """

    code = "malformed_file"


class RowError(Exception):
    """
    Base class for failures that only affect one row.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class CellCountMismatchError(RowError):
    def __init__(self, *, expected: int, actual: int) -> None:
        super().__init__(f"Row has {actual} cells but the header has {expected} columns.")
        self.expected = expected
        self.actual = actual


class RequiredFieldError(RowError):
    def __init__(self, *, fields: Sequence[str], defaulted: Sequence[str] = ()) -> None:
        parts: list[str] = []
        if fields:
            parts.append("Missing required value for: " + ", ".join(fields) + ".")
        if defaulted:
            parts.append("Could not parse required value for: " + ", ".join(defaulted) + ".")
        super().__init__(" ".join(parts) or "Missing required value.")
        self.fields = tuple(fields)
        self.defaulted = tuple(defaulted)


class ContactResolutionError(RowError):
    def __init__(self, *, name: str, reason: str) -> None:
        super().__init__(f"Could not resolve contact '{name}': {reason}")
        self.name = name


class RowPersistenceError(RowError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Could not save row: {reason}")


class OrderResolutionError(RowError):
    def __init__(self, *, order_number: str, reason: str) -> None:
        super().__init__(f"Could not resolve order '{order_number}': {reason}")
        self.order_number = order_number
