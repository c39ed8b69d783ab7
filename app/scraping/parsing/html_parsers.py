"""
BeautifulSoup-based row readers for rendered dashboard markup.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from bs4 import BeautifulSoup, Tag

RawRow = dict[str, str]


def clean_text(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def node_text(node: Tag) -> str:
    return clean_text(node.get_text(" ", strip=True))


class ExtractionStrategy(ABC):
    """
    One way of reading raw rows out of a parsed page.
    """

    name: str = "strategy"

    @abstractmethod
    def try_extract(self, soup: BeautifulSoup) -> list[RawRow]:
        """
        Return raw rows, or an empty list when this strategy finds nothing.
        """


class TableStrategy(ExtractionStrategy):
    """
    Reads table-like markup, mapping cells to fields by position.

    The first container that yields at least one row wins. A row with fewer
    cells than fields gets empty strings for the missing positions; rows
    without any cells (header rows made of `th`) are skipped.
    """

    name = "table"

    def __init__(
        self,
        *,
        container_selectors: Sequence[str],
        row_selectors: Sequence[str],
        cell_selectors: Sequence[str],
        fields: Sequence[str],
    ) -> None:
        self.container_selectors = list(container_selectors)
        self.row_selectors = list(row_selectors) or ["tr"]
        self.cell_selectors = list(cell_selectors) or ["td"]
        self.fields = list(fields)

    def try_extract(self, soup: BeautifulSoup) -> list[RawRow]:
        for container_selector in self.container_selectors:
            for container in soup.select(container_selector):
                rows = self._read_rows(container)
                if rows:
                    return rows
        return []

    def _read_rows(self, container: Tag) -> list[RawRow]:
        for row_selector in self.row_selectors:
            rows: list[RawRow] = []
            for node in container.select(row_selector):
                cells = self._read_cells(node)
                if not cells:
                    continue
                rows.append(
                    {
                        field: cells[index] if index < len(cells) else ""
                        for index, field in enumerate(self.fields)
                    }
                )
            if rows:
                return rows
        return []

    def _read_cells(self, row: Tag) -> list[str]:
        for cell_selector in self.cell_selectors:
            cells = row.select(cell_selector)
            if cells:
                return [node_text(cell) for cell in cells]
        return []


class CardStrategy(ExtractionStrategy):
    """
    Reads one row per card element.

    Fields come from the first matching sub-element in `field_selectors`, or
    from the innermost element whose text matches a `field_patterns` regex.
    """

    name = "cards"

    def __init__(
        self,
        *,
        card_selectors: Sequence[str],
        field_selectors: Mapping[str, Sequence[str]] | None = None,
        field_patterns: Mapping[str, str] | None = None,
    ) -> None:
        self.card_selectors = list(card_selectors)
        self.field_selectors = {key: list(value) for key, value in (field_selectors or {}).items()}
        self.field_patterns = {
            key: re.compile(pattern) for key, pattern in (field_patterns or {}).items()
        }

    def try_extract(self, soup: BeautifulSoup) -> list[RawRow]:
        for card_selector in self.card_selectors:
            rows = [self._read_card(card) for card in soup.select(card_selector)]
            rows = [row for row in rows if any(row.values())]
            if rows:
                return rows
        return []

    def _read_card(self, card: Tag) -> RawRow:
        row: RawRow = {}
        for field, selectors in self.field_selectors.items():
            row[field] = self._first_text(card, selectors)
        for field, pattern in self.field_patterns.items():
            row[field] = self._matching_text(card, pattern)
        return row

    @staticmethod
    def _first_text(card: Tag, selectors: Sequence[str]) -> str:
        for selector in selectors:
            node = card.select_one(selector)
            if node is not None:
                text = node_text(node)
                if text:
                    return text
        return ""

    @staticmethod
    def _matching_text(card: Tag, pattern: re.Pattern[str]) -> str:
        # Outer elements also match because their text ends the same way.
        matches = [
            text
            for text in (node_text(node) for node in card.find_all(True))
            if text and pattern.search(text)
        ]
        if not matches:
            return ""
        return min(matches, key=len)
