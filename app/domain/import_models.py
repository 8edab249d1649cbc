"""
app/domain/import_models.py

Domain models used by the tabular import flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Union


class FormatTag:
    STANDARD_CSV = "standard_csv"
    BANNER_EXPORT = "banner_export"


@dataclass(frozen=True)
class HeaderLayout:
    """
    Where the header row sits and what it contains. Built once per import.
    """

    header_row_index: int
    column_names: tuple[str, ...]
    format_tag: str = FormatTag.STANDARD_CSV
    suggested_entity_type: str | None = None

    @property
    def data_start_index(self) -> int:
        return self.header_row_index + 1

    @property
    def column_count(self) -> int:
        return len(self.column_names)


@dataclass(frozen=True)
class CanonicalRecord:
    """
    Typed canonical values for one row, ready for persistence.

    defaulted_fields lists fields whose value came from a coercion fallback
    (today's date, zero amount, choice default) rather than from the source.
    """

    values: dict[str, Any]
    defaulted_fields: frozenset[str] = frozenset()

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        return {name: _json_value(value) for name, value in self.values.items()}


@dataclass(frozen=True)
class ImportSuccess:
    row: int
    record: CanonicalRecord
    generated_id: Any
    updated: bool = False
    reference: str | None = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ImportFailure:
    row: int
    reason: str

    @property
    def ok(self) -> bool:
        return False


ImportOutcome = Union[ImportSuccess, ImportFailure]


@dataclass(frozen=True)
class ImportSummary:
    """
    End-of-run import summary. One outcome per data row, in row order.
    """

    outcomes: tuple[ImportOutcome, ...] = ()
    truncated: bool = False
    entity_type: str | None = None

    @property
    def successes(self) -> list[ImportSuccess]:
        return [outcome for outcome in self.outcomes if isinstance(outcome, ImportSuccess)]

    @property
    def failures(self) -> list[ImportFailure]:
        return [outcome for outcome in self.outcomes if isinstance(outcome, ImportFailure)]

    @property
    def success_count(self) -> int:
        return len(self.successes)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def message(self) -> str:
        """
        Human-readable outcome line.

        "Successfully imported N." with " M failed." appended only when M is
        above zero; a clean run never reads "0 failed.". A batch with no
        outcomes at all reads "No rows were imported.".
        """

        if self.success_count == 0 and self.failure_count == 0:
            return "No rows were imported."
        text = f"Successfully imported {self.success_count}."
        if self.failure_count:
            text += f" {self.failure_count} failed."
        return text


@dataclass(frozen=True)
class ResolvedContactRef:
    contact_id: int
    created: bool = False


@dataclass(frozen=True)
class ImportPreview:
    """
    Dry-run view of an upload: layout, proposed mapping and sample rows.
    """

    layout: HeaderLayout
    entity_type: str
    canonical_to_source: dict[str, str | None]
    match_strategies: dict[str, str]
    sample_rows: list[dict[str, str]] = field(default_factory=list)
    total_data_rows: int = 0
    missing_required: tuple[str, ...] = ()


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, date):
        return value.isoformat()
    return value
