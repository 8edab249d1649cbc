"""
app/validators package marker.
"""

from app.validators.field_coercers import (
    Coerced,
    coerce_amount,
    coerce_boolean,
    coerce_choice,
    coerce_date,
    coerce_text,
)
from app.validators.mapping_validator import MappingErrorDetail, MappingValidator, SchemaMappingError
from app.validators.row_validator import RowValidator

__all__ = [
    "Coerced",
    "MappingErrorDetail",
    "MappingValidator",
    "RowValidator",
    "SchemaMappingError",
    "coerce_amount",
    "coerce_boolean",
    "coerce_choice",
    "coerce_date",
    "coerce_text",
]
