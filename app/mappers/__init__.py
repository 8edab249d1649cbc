"""
app/mappers package marker.
"""

from app.mappers.column_mapper import ColumnMapper, ColumnMapping

__all__ = [
    "ColumnMapper",
    "ColumnMapping",
]
