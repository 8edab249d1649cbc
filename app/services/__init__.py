"""
app/services package marker.
"""

from app.services.contact_resolver import ContactResolver
from app.services.csv_import_service import (
    CSVImportService,
    MappingConfigNotFoundError,
    get_csv_import_service,
)
from app.services.order_resolver import OrderResolver
from app.services.row_importer import RowImporter

__all__ = [
    "CSVImportService",
    "ContactResolver",
    "MappingConfigNotFoundError",
    "OrderResolver",
    "RowImporter",
    "get_csv_import_service",
]
