"""
app/parsing package marker.
"""

from app.parsing.format_detector import detect_layout, suggest_entity_type
from app.parsing.tokenizer import tokenize

__all__ = [
    "detect_layout",
    "suggest_entity_type",
    "tokenize",
]
