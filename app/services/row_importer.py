"""
app/services/row_importer.py

Import one data row: project, coerce, resolve contacts and orders, upsert.

Every failure inside a row becomes an ImportFailure carrying the row's
1-based data position; nothing raised here escapes to the batch.
"""

from __future__ import annotations

import hashlib
import json
import logging
import secrets
import time
from typing import Any, Mapping, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.entities import EntityDefinition, FieldType
from app.domain.errors import CellCountMismatchError, RowError, RowPersistenceError
from app.domain.import_models import (
    CanonicalRecord,
    HeaderLayout,
    ImportFailure,
    ImportOutcome,
    ImportSuccess,
)
from app.mappers.column_mapper import ColumnMapper, ColumnMapping
from app.repositories.import_record_repository import ImportRecordRepository
from app.services.contact_resolver import ContactResolver
from app.services.order_resolver import OrderResolver
from app.validators.row_validator import RowValidator

logger = logging.getLogger(__name__)


def build_reference(prefix: str) -> str:
    """
    Synthetic display reference, e.g. EXP-1716200000000-0427.
    """

    return f"{prefix}-{int(time.time() * 1000)}-{secrets.randbelow(10000):04d}"


def fingerprint_record(entity: EntityDefinition, record: CanonicalRecord) -> str:
    """
    SHA-256 over the row's canonical content. Defaulted values are left out
    so a fallback such as today's date does not change the digest.
    """

    payload = {
        name: (None if name in record.defaulted_fields else value)
        for name, value in record.to_dict().items()
    }
    encoded = json.dumps({"entity": entity.name, "values": payload}, sort_keys=True, default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class RowImporter:
    """
    Imports rows of one batch for one entity type and tenant.
    """

    def __init__(
        self,
        *,
        session: Session,
        entity: EntityDefinition,
        mapping: ColumnMapping,
        tenant_id: int,
        contact_resolver: ContactResolver,
        order_resolver: OrderResolver | None = None,
        layout: HeaderLayout | None = None,
        validator: RowValidator | None = None,
        repository: ImportRecordRepository | None = None,
    ) -> None:
        self._session = session
        self._entity = entity
        self._mapping = mapping
        self._layout = layout
        self._tenant_id = tenant_id
        self._contact_resolver = contact_resolver
        self._order_resolver = order_resolver
        self._validator = validator or RowValidator()
        self._repository = repository or ImportRecordRepository(session)
        self._column_index = self._build_column_index(layout.column_names if layout else ())

    @property
    def contact_resolver(self) -> ContactResolver:
        return self._contact_resolver

    def import_row(self, raw_row: Sequence[str], row_number: int) -> ImportOutcome:
        """
        Import one tokenized row aligned with the layout's header.
        """

        if self._layout is None:
            raise ValueError("import_row requires a HeaderLayout; use import_record for keyed rows.")
        try:
            if len(raw_row) != self._layout.column_count:
                raise CellCountMismatchError(expected=self._layout.column_count, actual=len(raw_row))
            keyed = {name: raw_row[index] for name, index in self._column_index.items()}
        except RowError as exc:
            return ImportFailure(row=row_number, reason=exc.message)
        return self.import_record(keyed, row_number)

    def import_record(self, keyed_row: Mapping[str, Any], row_number: int) -> ImportOutcome:
        """
        Import one header-keyed row (from the tokenizer or a pre-parsed payload).
        """

        try:
            mapped_row = ColumnMapper.map_row(
                raw_row={key: None if value is None else str(value) for key, value in keyed_row.items()},
                mapping=self._mapping,
            )
            record = self._validator.build_record(mapped_row=mapped_row, entity=self._entity)
            values = self._resolve_references(record)
            return self._persist(record, values, row_number)
        except RowError as exc:
            return ImportFailure(row=row_number, reason=exc.message)
        except SQLAlchemyError as exc:
            reason = RowPersistenceError(_short_db_error(exc)).message
            return ImportFailure(row=row_number, reason=reason)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected import error entity=%s row=%s", self._entity.name, row_number)
            return ImportFailure(row=row_number, reason=f"Unexpected error: {exc}")

    def _resolve_references(self, record: CanonicalRecord) -> dict[str, Any]:
        values = dict(record.values)
        for field_spec in self._entity.fields:
            if field_spec.name not in values:
                continue
            reference = values[field_spec.name]
            if field_spec.field_type == FieldType.CONTACT:
                values[field_spec.name] = self._contact_resolver.resolve(reference).contact_id if reference else None
            elif field_spec.field_type == FieldType.ORDER:
                if self._order_resolver is None:
                    raise ValueError(f"{self._entity.name} rows reference orders but no OrderResolver was given.")
                values[field_spec.name] = self._order_resolver.resolve(reference or "")
        return values

    def _persist(
        self,
        record: CanonicalRecord,
        values: Mapping[str, Any],
        row_number: int,
    ) -> ImportSuccess:
        model = self._entity.model
        model_values = self._entity.to_model_values(values)
        fingerprint = fingerprint_record(self._entity, record)
        model_values["import_fingerprint"] = fingerprint

        natural_key = self._entity.natural_key
        key_value = values.get(natural_key) if natural_key else None

        with self._repository.savepoint():
            if key_value:
                key_spec = self._entity.get_field(natural_key)
                existing = self._repository.find_by_attribute(
                    model,
                    tenant_id=self._tenant_id,
                    attribute=key_spec.column if key_spec else natural_key,
                    value=key_value,
                )
            else:
                existing = self._repository.find_by_fingerprint(
                    model,
                    tenant_id=self._tenant_id,
                    fingerprint=fingerprint,
                )

            if existing is not None:
                instance = self._repository.update(existing, values=model_values)
                updated = True
            else:
                if self._entity.reference_prefix and self._entity.reference_attribute:
                    model_values[self._entity.reference_attribute] = build_reference(
                        self._entity.reference_prefix
                    )
                instance = self._repository.insert(model, tenant_id=self._tenant_id, values=model_values)
                updated = False

        reference = None
        if self._entity.reference_attribute:
            reference = getattr(instance, self._entity.reference_attribute, None)
        elif natural_key:
            reference = key_value

        logger.debug(
            "Imported row entity=%s row=%s id=%s updated=%s",
            self._entity.name,
            row_number,
            instance.id,
            updated,
        )
        return ImportSuccess(
            row=row_number,
            record=record,
            generated_id=instance.id,
            updated=updated,
            reference=reference,
        )

    @staticmethod
    def _build_column_index(column_names: Sequence[str]) -> dict[str, int]:
        index: dict[str, int] = {}
        for position, name in enumerate(column_names):
            if name and name not in index:
                index[name] = position
        return index


def _short_db_error(exc: SQLAlchemyError) -> str:
    original = getattr(exc, "orig", None)
    text = str(original if original is not None else exc).strip()
    return text.splitlines()[0] if text else exc.__class__.__name__
