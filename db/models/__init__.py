"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.contact import Contact
from db.models.expense import Expense
from db.models.ingredient import Ingredient
from db.models.mapping_config import MappingConfig
from db.models.order import Order
from db.models.order_item import OrderItem
from db.models.quote import Quote

__all__ = [
    "Contact",
    "Expense",
    "Ingredient",
    "MappingConfig",
    "Order",
    "OrderItem",
    "Quote",
]
