"""
app/schemas package marker.
"""

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

__all__ = [
    "HeaderLayoutResponse",
    "ImportPreviewResponse",
    "ImportRecordsRequest",
    "ImportRowErrorResponse",
    "ImportSuccessDetail",
    "ImportSummaryResponse",
    "MappingConfigRequest",
    "MappingConfigResponse",
]
