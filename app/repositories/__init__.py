"""
app/repositories package marker.
"""

from app.repositories.contact_repository import ContactRepository
from app.repositories.import_record_repository import ImportRecordRepository
from app.repositories.mapping_config_repository import MappingConfigRepository

__all__ = [
    "ContactRepository",
    "ImportRecordRepository",
    "MappingConfigRepository",
]
