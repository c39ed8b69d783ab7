"""
Parsing helpers for rendered dashboard markup.
"""

from app.scraping.parsing.html_parsers import (
    CardStrategy,
    ExtractionStrategy,
    RawRow,
    TableStrategy,
    clean_text,
    node_text,
)

__all__ = [
    "CardStrategy",
    "ExtractionStrategy",
    "RawRow",
    "TableStrategy",
    "clean_text",
    "node_text",
]
