"""
app/api/routers/csv_import.py

Tabular import HTTP endpoints.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Form, HTTPException, Path, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_csv_upload, read_upload_bytes
from app.config import CSVImportSettings, get_csv_import_settings
from app.domain.entities import UnknownEntityTypeError
from app.domain.errors import StructuralError
from app.domain.import_models import ImportSuccess, ImportSummary
from app.schemas.csv_import import (
    HeaderLayoutResponse,
    ImportPreviewResponse,
    ImportRecordsRequest,
    ImportRowErrorResponse,
    ImportSuccessDetail,
    ImportSummaryResponse,
    MappingConfigRequest,
    MappingConfigResponse,
)
from app.services.csv_import_service import (
    CSVImportService,
    MappingConfigNotFoundError,
    get_csv_import_service,
)
from app.validators.mapping_validator import SchemaMappingError
from db.session import get_db

router = APIRouter(prefix="/imports", tags=["imports"])


@router.post("/{entity_type}", response_model=ImportSummaryResponse)
def import_csv(
    entity_type: str = Path(..., description="quote, order, order_item, expense, contact or ingredient"),
    file: UploadFile = Depends(get_csv_upload),
    tenant_id: int = Query(..., ge=1, description="Tenant that owns the imported rows"),
    column_mapping: str | None = Form(default=None, description="JSON object of field -> column overrides"),
    mapping_config_name: str | None = Query(default=None, description="Optional saved mapping name"),
    include_details: bool = Query(default=False, description="Echo imported records as successDetails"),
    db: Session = Depends(get_db),
    import_service: CSVImportService = Depends(get_csv_import_service),
    settings: CSVImportSettings = Depends(get_csv_import_settings),
) -> ImportSummaryResponse:
    """
    Import one uploaded CSV file.
    """

    overrides = _parse_column_mapping(column_mapping)
    try:
        content = read_upload_bytes(file, max_bytes=settings.max_upload_bytes)
        summary = import_service.import_csv(
            content=content,
            db=db,
            tenant_id=tenant_id,
            entity_type=entity_type,
            column_mapping=overrides,
            mapping_config_name=mapping_config_name,
        )
    except UnknownEntityTypeError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except MappingConfigNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StructuralError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc
    except SchemaMappingError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc
    finally:
        file.file.close()

    return _to_summary_response(
        summary,
        max_errors=import_service.max_reported_errors,
        include_details=include_details,
    )


@router.post("/{entity_type}/records", response_model=ImportSummaryResponse)
def import_records(
    payload: ImportRecordsRequest,
    entity_type: str = Path(..., description="quote, order, order_item, expense, contact or ingredient"),
    include_details: bool = Query(default=True),
    db: Session = Depends(get_db),
    import_service: CSVImportService = Depends(get_csv_import_service),
) -> ImportSummaryResponse:
    """
    Import rows the client already parsed (for example after a preview).
    """

    try:
        summary = import_service.import_records(
            records=payload.records,
            db=db,
            tenant_id=payload.tenant_id,
            entity_type=entity_type,
            column_mapping=payload.column_mapping,
            mapping_config_name=payload.mapping_config_name,
        )
    except UnknownEntityTypeError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except MappingConfigNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StructuralError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc
    except SchemaMappingError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc

    return _to_summary_response(
        summary,
        max_errors=import_service.max_reported_errors,
        include_details=include_details,
    )


@router.post("/{entity_type}/preview", response_model=ImportPreviewResponse)
def preview_csv(
    entity_type: str = Path(..., description="quote, order, order_item, expense, contact, ingredient or auto"),
    file: UploadFile = Depends(get_csv_upload),
    tenant_id: int = Query(..., ge=1),
    column_mapping: str | None = Form(default=None),
    mapping_config_name: str | None = Query(default=None),
    db: Session = Depends(get_db),
    import_service: CSVImportService = Depends(get_csv_import_service),
    settings: CSVImportSettings = Depends(get_csv_import_settings),
) -> ImportPreviewResponse:
    """
    Detect the layout and propose a mapping without importing anything.
    Use `auto` as the entity type to let the header vocabulary decide.
    """

    overrides = _parse_column_mapping(column_mapping)
    try:
        content = read_upload_bytes(file, max_bytes=settings.max_upload_bytes)
        preview = import_service.preview(
            content=content,
            db=db,
            tenant_id=tenant_id,
            entity_type=None if entity_type.strip().lower() == "auto" else entity_type,
            column_mapping=overrides,
            mapping_config_name=mapping_config_name,
        )
    except UnknownEntityTypeError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except MappingConfigNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StructuralError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc
    except SchemaMappingError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc
    finally:
        file.file.close()

    layout = preview.layout
    return ImportPreviewResponse(
        entity_type=preview.entity_type,
        layout=HeaderLayoutResponse(
            header_row_index=layout.header_row_index,
            column_names=list(layout.column_names),
            format_tag=layout.format_tag,
            suggested_entity_type=layout.suggested_entity_type,
        ),
        mapping=preview.canonical_to_source,
        strategies=preview.match_strategies,
        missing_required=list(preview.missing_required),
        sample_rows=preview.sample_rows,
        total_rows=preview.total_data_rows,
    )


@router.put("/{entity_type}/mapping-configs/{name}", response_model=MappingConfigResponse)
def save_mapping_config(
    payload: MappingConfigRequest,
    entity_type: str = Path(...),
    name: str = Path(..., min_length=1, max_length=120),
    db: Session = Depends(get_db),
    import_service: CSVImportService = Depends(get_csv_import_service),
) -> MappingConfigResponse:
    """
    Create or replace a saved column mapping for a tenant.
    """

    try:
        config = import_service.save_mapping_config(
            db=db,
            tenant_id=payload.tenant_id,
            entity_type=entity_type,
            name=name,
            field_mapping=payload.field_mapping,
            notes=payload.notes,
        )
    except UnknownEntityTypeError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SchemaMappingError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc

    return MappingConfigResponse(
        id=str(config.id),
        name=config.name,
        entity_type=config.entity_type,
        tenant_id=config.tenant_id,
        field_mapping=config.field_mapping_json,
        is_active=config.is_active,
    )


def _parse_column_mapping(raw: str | None) -> dict[str, str | None] | None:
    if raw is None or not raw.strip():
        return None
    try:
        parsed: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="column_mapping must be a JSON object.",
        ) from exc
    if not isinstance(parsed, dict) or not all(
        isinstance(key, str) and (value is None or isinstance(value, str))
        for key, value in parsed.items()
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="column_mapping must map field names to column names (or null).",
        )
    return parsed


def _to_summary_response(
    summary: ImportSummary,
    *,
    max_errors: int,
    include_details: bool,
) -> ImportSummaryResponse:
    details = None
    if include_details:
        details = [
            ImportSuccessDetail(
                row=outcome.row,
                id=outcome.generated_id,
                reference=outcome.reference,
                updated=outcome.updated,
                record=outcome.record.to_dict(),
            )
            for outcome in summary.outcomes
            if isinstance(outcome, ImportSuccess)
        ]

    return ImportSummaryResponse(
        success=summary.success_count > 0 or summary.failure_count == 0,
        success_count=summary.success_count,
        error_count=summary.failure_count,
        errors=[
            ImportRowErrorResponse(row=failure.row, message=failure.reason)
            for failure in summary.failures[:max_errors]
        ],
        message=summary.message,
        truncated=summary.truncated,
        success_details=details,
    )
