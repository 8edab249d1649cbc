"""
app/validators/row_validator.py

Row-level coercion and required-field checks for imported rows.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Mapping

from app.domain.entities import EntityDefinition, FieldSpec, FieldType
from app.domain.errors import RequiredFieldError
from app.domain.import_models import CanonicalRecord
from app.validators.field_coercers import (
    Coerced,
    coerce_amount,
    coerce_boolean,
    coerce_choice,
    coerce_date,
    coerce_text,
)

logger = logging.getLogger(__name__)


class RowValidator:
    """
    Turns one mapped row of raw strings into a CanonicalRecord.
    """

    def __init__(self, *, today: date | None = None, quoted_text: bool = False) -> None:
        self._today = today
        self._quoted_text = quoted_text

    def is_completely_empty_row(self, row: Mapping[str, Any]) -> bool:
        """
        Return True when all values in the row are empty or whitespace.
        """

        return all(self._is_blank(value) for value in row.values())

    def build_record(
        self,
        *,
        mapped_row: Mapping[str, str | None],
        entity: EntityDefinition,
    ) -> CanonicalRecord:
        """
        Coerce every mapped field and enforce the entity's required fields.

        Only fields present in `mapped_row` appear in the record, so
        unmapped columns never overwrite stored values on update.
        Raises RequiredFieldError.
        """

        values: dict[str, Any] = {}
        defaulted: set[str] = set()
        missing: list[str] = []
        unparseable: list[str] = []

        for field_spec in entity.fields:
            if field_spec.name not in mapped_row:
                if field_spec.required:
                    missing.append(field_spec.name)
                continue

            raw = mapped_row[field_spec.name]
            coerced = self._coerce(field_spec, raw)
            values[field_spec.name] = coerced.value
            if coerced.defaulted:
                defaulted.add(field_spec.name)
                logger.debug(
                    "Coercion fallback entity=%s field=%s raw=%r value=%r",
                    entity.name,
                    field_spec.name,
                    raw,
                    coerced.value,
                )

            if not field_spec.required:
                continue
            if self._is_blank(coerced.value) and not (coerced.defaulted and field_spec.allow_default):
                missing.append(field_spec.name)
            elif coerced.defaulted and not field_spec.allow_default:
                unparseable.append(field_spec.name)

        if missing or unparseable:
            raise RequiredFieldError(fields=missing, defaulted=unparseable)

        return CanonicalRecord(values=values, defaulted_fields=frozenset(defaulted))

    def _coerce(self, field_spec: FieldSpec, raw: str | None) -> Coerced:
        if field_spec.field_type == FieldType.DATE:
            return coerce_date(raw, required=field_spec.required, today=self._today)
        if field_spec.field_type == FieldType.AMOUNT:
            if field_spec.default is None:
                return coerce_amount(raw)
            return coerce_amount(raw, default=Decimal(field_spec.default))
        if field_spec.field_type == FieldType.BOOLEAN:
            return coerce_boolean(raw)
        if field_spec.field_type == FieldType.CHOICE:
            return coerce_choice(
                raw,
                choices=field_spec.choices,
                aliases=field_spec.choice_aliases,
                default=field_spec.default,
            )
        return coerce_text(raw, quoted=self._quoted_text, default=field_spec.default)

    @staticmethod
    def _is_blank(value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, str):
            return not value.strip()
        return False
