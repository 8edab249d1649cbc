"""
app/schemas/csv_import.py

Request and response schemas for import endpoints.

Field aliases keep the camelCase wire names the bakery front end already
reads (successCount, errorCount, ...).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ImportRowErrorResponse(BaseModel):
    """
    One failed row: its 1-based data position and the reason.
    """

    row: int = Field(..., ge=1)
    message: str


class ImportSuccessDetail(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    row: int = Field(..., ge=1)
    id: Any = None
    reference: str | None = None
    updated: bool = False
    record: dict[str, Any] = Field(default_factory=dict)


class ImportSummaryResponse(BaseModel):
    """
    API response model for one import batch.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    success_count: int = Field(..., ge=0, alias="successCount")
    error_count: int = Field(..., ge=0, alias="errorCount")
    errors: list[ImportRowErrorResponse] = Field(default_factory=list)
    message: str
    truncated: bool = False
    success_details: list[ImportSuccessDetail] | None = Field(default=None, alias="successDetails")


class ImportRecordsRequest(BaseModel):
    """
    Pre-parsed rows keyed by source column name.
    """

    model_config = ConfigDict(populate_by_name=True)

    tenant_id: int = Field(..., ge=1, alias="tenantId")
    records: list[dict[str, Any]] = Field(default_factory=list)
    column_mapping: dict[str, str | None] | None = Field(default=None, alias="columnMapping")
    mapping_config_name: str | None = Field(default=None, alias="mappingConfigName")


class HeaderLayoutResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    header_row_index: int = Field(..., ge=0, alias="headerRowIndex")
    column_names: list[str] = Field(default_factory=list, alias="columnNames")
    format_tag: str = Field(..., alias="formatTag")
    suggested_entity_type: str | None = Field(default=None, alias="suggestedEntityType")


class ImportPreviewResponse(BaseModel):
    """
    Dry-run result: detected layout, proposed mapping, sample rows.
    """

    model_config = ConfigDict(populate_by_name=True)

    entity_type: str = Field(..., alias="entityType")
    layout: HeaderLayoutResponse
    mapping: dict[str, str | None] = Field(default_factory=dict)
    strategies: dict[str, str] = Field(default_factory=dict)
    missing_required: list[str] = Field(default_factory=list, alias="missingRequired")
    sample_rows: list[dict[str, str]] = Field(default_factory=list, alias="sampleRows")
    total_rows: int = Field(..., ge=0, alias="totalRows")


class MappingConfigRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tenant_id: int = Field(..., ge=1, alias="tenantId")
    field_mapping: dict[str, str | None] = Field(..., alias="fieldMapping")
    notes: str | None = Field(default=None, max_length=500)


class MappingConfigResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    entity_type: str = Field(..., alias="entityType")
    tenant_id: int = Field(..., ge=1, alias="tenantId")
    field_mapping: dict[str, str | None] = Field(default_factory=dict, alias="fieldMapping")
    is_active: bool = Field(..., alias="isActive")
