"""
app/domain package marker.
"""

from app.domain.entities import (
    ENTITY_DEFINITIONS,
    EntityDefinition,
    FieldSpec,
    FieldType,
    UnknownEntityTypeError,
    get_entity_definition,
)
from app.domain.errors import (
    CellCountMismatchError,
    ContactResolutionError,
    MalformedFileError,
    OrderResolutionError,
    RequiredFieldError,
    RowError,
    RowPersistenceError,
    StructuralError,
)
from app.domain.import_models import (
    CanonicalRecord,
    FormatTag,
    HeaderLayout,
    ImportFailure,
    ImportOutcome,
    ImportPreview,
    ImportSuccess,
    ImportSummary,
    ResolvedContactRef,
)

__all__ = [
    "ENTITY_DEFINITIONS",
    "CanonicalRecord",
    "CellCountMismatchError",
    "ContactResolutionError",
    "EntityDefinition",
    "FieldSpec",
    "FieldType",
    "FormatTag",
    "HeaderLayout",
    "ImportFailure",
    "ImportOutcome",
    "ImportPreview",
    "ImportSuccess",
    "ImportSummary",
    "MalformedFileError",
    "OrderResolutionError",
    "RequiredFieldError",
    "ResolvedContactRef",
    "RowError",
    "RowPersistenceError",
    "StructuralError",
    "UnknownEntityTypeError",
    "get_entity_definition",
]
