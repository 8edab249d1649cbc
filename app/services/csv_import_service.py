"""
app/services/csv_import_service.py

Service layer for tabular import orchestration.

Flow for one batch:

    tokenize -> detect_layout -> resolve column mapping -> RowImporter per row

Structural and mapping problems raise before any row is imported. Row
problems become ImportFailure outcomes and the batch carries on. Each row
is committed on its own, so a later failure never undoes an earlier row.
"""

from __future__ import annotations

import logging
import time
from datetime import date
from functools import lru_cache
from typing import Any, Callable, Mapping, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import DEFAULT_BANNER_MARKERS, get_csv_import_settings
from app.domain.entities import EntityDefinition, get_entity_definition
from app.domain.errors import MalformedFileError, RowPersistenceError
from app.domain.import_models import (
    HeaderLayout,
    ImportFailure,
    ImportOutcome,
    ImportPreview,
    ImportSummary,
)
from app.logging_utils import log_event
from app.mappers.column_mapper import ColumnMapper, ColumnMapping
from app.parsing.format_detector import detect_layout
from app.parsing.tokenizer import tokenize
from app.repositories.contact_repository import ContactRepository
from app.repositories.import_record_repository import ImportRecordRepository
from app.repositories.mapping_config_repository import MappingConfigRepository
from app.services.contact_resolver import ContactResolver
from app.services.order_resolver import OrderResolver
from app.services.row_importer import RowImporter
from app.validators.mapping_validator import MappingErrorDetail, MappingValidator, SchemaMappingError
from app.validators.row_validator import RowValidator
from db.models.mapping_config import MappingConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class MappingConfigNotFoundError(LookupError):
    """
    Raised when a caller names a saved mapping that does not exist.
    """

    def __init__(self, *, name: str, entity_type: str) -> None:
        super().__init__(f"No active mapping config named '{name}' for {entity_type} imports.")
        self.name = name
        self.entity_type = entity_type


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CSVImportService:
    """
    Coordinates tokenizing, layout detection, mapping and per-row import.
    """

    def __init__(
        self,
        *,
        max_reported_errors: int = 500,
        log_row_errors: bool = True,
        deadline_seconds: float = 0.0,
        preview_rows: int = 10,
        delimiter: str = ",",
        banner_markers: Sequence[str] = DEFAULT_BANNER_MARKERS,
        mapper: ColumnMapper | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_reported_errors = max(1, max_reported_errors)
        self._log_row_errors = log_row_errors
        self._deadline_seconds = max(0.0, deadline_seconds)
        self._preview_rows = max(1, preview_rows)
        self._delimiter = delimiter
        self._banner_markers = tuple(banner_markers)
        self._mapper = mapper or ColumnMapper()
        self._clock = clock

    @property
    def max_reported_errors(self) -> int:
        return self._max_reported_errors

    def import_csv(
        self,
        *,
        content: str | bytes,
        db: Session,
        tenant_id: int,
        entity_type: str,
        column_mapping: Mapping[str, str | None] | None = None,
        mapping_config_name: str | None = None,
        today: date | None = None,
    ) -> ImportSummary:
        """
        Import raw CSV text for one tenant and entity type.

        Raises MalformedFileError, SchemaMappingError, MappingConfigNotFoundError
        or UnknownEntityTypeError before any row is written.
        """

        entity = get_entity_definition(entity_type)
        rows = tokenize(content, delimiter=self._delimiter)
        layout = detect_layout(rows, banner_markers=self._banner_markers)
        mapping = self._resolve_mapping(
            db=db,
            tenant_id=tenant_id,
            entity=entity,
            column_names=layout.column_names,
            column_mapping=column_mapping,
            mapping_config_name=mapping_config_name,
        )
        log_event(
            logger,
            logging.INFO,
            "csv_import_started",
            tenant_id=tenant_id,
            entity_type=entity.name,
            format_tag=layout.format_tag,
            header_row=layout.header_row_index,
            data_rows=len(rows) - layout.data_start_index,
            strategies=mapping.match_strategies,
        )

        importer = self._build_importer(
            db=db,
            entity=entity,
            mapping=mapping,
            tenant_id=tenant_id,
            layout=layout,
            validator=RowValidator(today=today),
        )
        data_rows = rows[layout.data_start_index:]
        return self._run_batch(
            db=db,
            entity=entity,
            tenant_id=tenant_id,
            items=data_rows,
            import_one=importer.import_row,
            is_empty=lambda row: all(not cell.strip() for cell in row),
            resolver=importer.contact_resolver,
        )

    def import_records(
        self,
        *,
        records: Sequence[Mapping[str, Any]],
        db: Session,
        tenant_id: int,
        entity_type: str,
        column_mapping: Mapping[str, str | None] | None = None,
        mapping_config_name: str | None = None,
        today: date | None = None,
    ) -> ImportSummary:
        """
        Import rows a caller already parsed into header-keyed dicts.

        Header names are the union of record keys in first-seen order. Text
        values may still carry surrounding quotes, which are stripped.
        """

        entity = get_entity_definition(entity_type)
        column_names: list[str] = []
        for record in records:
            for key in record:
                name = str(key).strip()
                if name and name not in column_names:
                    column_names.append(name)
        if not column_names:
            if records:
                raise MalformedFileError("Records carry no column names.")
            return ImportSummary(outcomes=(), entity_type=entity.name)

        mapping = self._resolve_mapping(
            db=db,
            tenant_id=tenant_id,
            entity=entity,
            column_names=tuple(column_names),
            column_mapping=column_mapping,
            mapping_config_name=mapping_config_name,
        )
        log_event(
            logger,
            logging.INFO,
            "records_import_started",
            tenant_id=tenant_id,
            entity_type=entity.name,
            data_rows=len(records),
            strategies=mapping.match_strategies,
        )

        importer = self._build_importer(
            db=db,
            entity=entity,
            mapping=mapping,
            tenant_id=tenant_id,
            layout=None,
            validator=RowValidator(today=today, quoted_text=True),
        )
        normalized = [
            {str(key).strip(): value for key, value in record.items()}
            for record in records
        ]
        return self._run_batch(
            db=db,
            entity=entity,
            tenant_id=tenant_id,
            items=normalized,
            import_one=importer.import_record,
            is_empty=lambda row: all(value is None or not str(value).strip() for value in row.values()),
            resolver=importer.contact_resolver,
        )

    def preview(
        self,
        *,
        content: str | bytes,
        db: Session,
        tenant_id: int,
        entity_type: str | None = None,
        column_mapping: Mapping[str, str | None] | None = None,
        mapping_config_name: str | None = None,
    ) -> ImportPreview:
        """
        Detect layout and propose a mapping without writing anything.

        When `entity_type` is omitted the detected suggestion is used.
        Missing required fields are reported rather than raised.
        """

        rows = tokenize(content, delimiter=self._delimiter)
        layout = detect_layout(rows, banner_markers=self._banner_markers)
        resolved_type = entity_type or layout.suggested_entity_type
        if not resolved_type:
            raise MalformedFileError(
                "Could not tell what kind of records this file holds; choose an entity type."
            )
        entity = get_entity_definition(resolved_type)

        config = self._get_mapping_config(
            db=db,
            tenant_id=tenant_id,
            entity=entity,
            mapping_config_name=mapping_config_name,
        )
        mapping = self._mapper.resolve(
            layout.column_names,
            entity,
            overrides=column_mapping,
            mapping_config=config,
            require_complete=False,
        )

        data_rows = rows[layout.data_start_index:]
        samples = [
            {
                name: (row[index] if index < len(row) else "")
                for index, name in enumerate(layout.column_names)
                if name
            }
            for row in data_rows[: self._preview_rows]
        ]
        return ImportPreview(
            layout=layout,
            entity_type=entity.name,
            canonical_to_source=dict(mapping.canonical_to_source),
            match_strategies=dict(mapping.match_strategies),
            sample_rows=samples,
            total_data_rows=len(data_rows),
            missing_required=self._missing_required(mapping, entity),
        )

    def save_mapping_config(
        self,
        *,
        db: Session,
        tenant_id: int,
        entity_type: str,
        name: str,
        field_mapping: Mapping[str, str | None],
        notes: str | None = None,
    ) -> MappingConfig:
        """
        Persist a named mapping for later imports. Field names are checked
        against the entity; column names are not, since they belong to
        future files.
        """

        entity = get_entity_definition(entity_type)
        unknown = [field_name for field_name in field_mapping if field_name not in entity.field_names]
        if unknown:
            raise SchemaMappingError(
                message="Mapping names fields this entity does not have.",
                errors=[
                    MappingErrorDetail(
                        code="invalid_canonical_field",
                        message="Unknown canonical field in mapping.",
                        canonical_field=field_name,
                        source_column=field_mapping[field_name],
                    )
                    for field_name in unknown
                ],
            )

        repository = MappingConfigRepository(db)
        try:
            config = repository.save(
                tenant_id=tenant_id,
                entity_type=entity.name,
                name=name,
                field_mapping=dict(field_mapping),
                notes=notes,
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        logger.info(
            "Saved mapping config tenant=%s entity=%s name=%s fields=%s",
            tenant_id,
            entity.name,
            config.name,
            len(field_mapping),
        )
        return config

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run_batch(
        self,
        *,
        db: Session,
        entity: EntityDefinition,
        tenant_id: int,
        items: Sequence[Any],
        import_one: Callable[[Any, int], ImportOutcome],
        is_empty: Callable[[Any], bool],
        resolver: ContactResolver,
    ) -> ImportSummary:
        started = self._clock()
        outcomes: list[ImportOutcome] = []
        truncated = False

        for row_number, item in enumerate(items, start=1):
            if self._deadline_seconds and self._clock() - started >= self._deadline_seconds:
                truncated = True
                log_event(
                    logger,
                    logging.WARNING,
                    "csv_import_deadline_reached",
                    tenant_id=tenant_id,
                    entity_type=entity.name,
                    processed=row_number - 1,
                    remaining=len(items) - row_number + 1,
                )
                break
            if is_empty(item):
                logger.debug("Skipping blank row entity=%s row=%s", entity.name, row_number)
                continue

            outcome = import_one(item, row_number)
            outcome = self._commit_row(db=db, outcome=outcome, resolver=resolver)
            if isinstance(outcome, ImportFailure):
                self._log_failure(entity=entity, failure=outcome)
            outcomes.append(outcome)

        summary = ImportSummary(outcomes=tuple(outcomes), truncated=truncated, entity_type=entity.name)
        log_event(
            logger,
            logging.INFO,
            "csv_import_finished",
            tenant_id=tenant_id,
            entity_type=entity.name,
            success_count=summary.success_count,
            failure_count=summary.failure_count,
            truncated=truncated,
            elapsed_ms=round((self._clock() - started) * 1000, 1),
        )
        return summary

    @staticmethod
    def _commit_row(*, db: Session, outcome: ImportOutcome, resolver: ContactResolver) -> ImportOutcome:
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            resolver.forget_created()
            if isinstance(outcome, ImportFailure):
                return outcome
            return ImportFailure(row=outcome.row, reason=RowPersistenceError(str(exc).splitlines()[0]).message)
        resolver.mark_committed()
        return outcome

    def _log_failure(self, *, entity: EntityDefinition, failure: ImportFailure) -> None:
        if self._log_row_errors:
            logger.warning(
                "CSV import error entity=%s row=%s message=%s",
                entity.name,
                failure.row,
                failure.reason,
            )

    def _build_importer(
        self,
        *,
        db: Session,
        entity: EntityDefinition,
        mapping: ColumnMapping,
        tenant_id: int,
        layout: HeaderLayout | None,
        validator: RowValidator,
    ) -> RowImporter:
        resolver = ContactResolver(ContactRepository(db), tenant_id)
        return RowImporter(
            session=db,
            entity=entity,
            mapping=mapping,
            tenant_id=tenant_id,
            contact_resolver=resolver,
            order_resolver=OrderResolver(ImportRecordRepository(db), tenant_id),
            layout=layout,
            validator=validator,
        )

    def _resolve_mapping(
        self,
        *,
        db: Session,
        tenant_id: int,
        entity: EntityDefinition,
        column_names: Sequence[str],
        column_mapping: Mapping[str, str | None] | None,
        mapping_config_name: str | None,
    ) -> ColumnMapping:
        mapping_config = self._get_mapping_config(
            db=db,
            tenant_id=tenant_id,
            entity=entity,
            mapping_config_name=mapping_config_name,
        )
        return self._mapper.resolve(
            column_names,
            entity,
            overrides=column_mapping,
            mapping_config=mapping_config,
        )

    @staticmethod
    def _get_mapping_config(
        *,
        db: Session,
        tenant_id: int,
        entity: EntityDefinition,
        mapping_config_name: str | None,
    ) -> MappingConfig | None:
        config = MappingConfigRepository(db).get_active(
            tenant_id=tenant_id,
            entity_type=entity.name,
            name=mapping_config_name,
        )
        if config is None and mapping_config_name:
            raise MappingConfigNotFoundError(name=mapping_config_name, entity_type=entity.name)
        return config

    @staticmethod
    def _missing_required(mapping: ColumnMapping, entity: EntityDefinition) -> tuple[str, ...]:
        errors = MappingValidator.for_entity(entity).collect_errors(
            mapping=mapping.canonical_to_source,
            source_headers=[name for name in mapping.source_headers if name],
        )
        return tuple(
            error.canonical_field
            for error in errors
            if error.code == "required_field_unmapped" and error.canonical_field
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_csv_import_service() -> CSVImportService:
    """
    Build and cache the import service with env-driven settings.
    """
    settings = get_csv_import_settings()
    return CSVImportService(
        max_reported_errors=settings.max_reported_errors,
        log_row_errors=settings.log_row_errors,
        deadline_seconds=settings.deadline_seconds,
        preview_rows=settings.preview_rows,
        delimiter=settings.delimiter,
        banner_markers=settings.banner_markers,
    )
