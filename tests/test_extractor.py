"""
tests/test_extractor.py

Pytest unit tests for the markup strategies and the Extractor.

Coverage
--------
- Positional table mapping, padding and header skipping
- Card fields from selectors and text patterns
- Fallback order and the fallback flag
- Empty extraction
- Waiting for result containers without failing on a timeout
"""

from __future__ import annotations

import asyncio

from bs4 import BeautifulSoup

from app.scraping.config import load_view_configs
from app.scraping.extractor import ExtractionPlan, Extractor
from app.scraping.parsing import CardStrategy, TableStrategy
from tests.fakes import FakePage

FIELDS = ["rank", "keyword", "popularity", "popularity_change", "ctr", "cvr", "cpa"]

PRIMARY_TABLE = """
<div class="byted-Table-Body"><table>
  <tr><th>Rank</th><th>Keyword</th></tr>
  <tr><td>1</td><td>fitness</td><td>12K</td><td>250%</td><td>2%</td><td>5%</td><td>$1.50</td></tr>
  <tr><td>2</td><td>yoga</td><td>8K</td></tr>
</table></div>
"""

ROLE_TABLE = """
<div role="table">
  <div role="row"><span role="cell">1</span><span role="cell">pilates</span></div>
</div>
"""

HASHTAG_CARDS = """
<a class="CardPc_container__a1" href="#">
  <span class="CardPc_rankingIndex__b2">1</span>
  <span class="CardPc_titleText__c3"># fitness</span>
  <div class="CardPc_info"><span class="CardPc_itemValue">12.3K Posts</span></div>
</a>
<a class="CardPc_container__a1" href="#">
  <span class="CardPc_rankingIndex__b2">2</span>
  <span class="CardPc_titleText__c3"># gym</span>
</a>
"""


def _keyword_plan() -> ExtractionPlan:
    catalog = load_view_configs(config_path="app/scraping/config/views.json")
    return ExtractionPlan.from_config(catalog.get("keyword_insights").extraction)


class TestTableStrategy:
    def test_maps_cells_by_position_and_pads_short_rows(self) -> None:
        strategy = TableStrategy(
            container_selectors=[".byted-Table-Body"],
            row_selectors=["tr"],
            cell_selectors=["td"],
            fields=FIELDS,
        )

        rows = strategy.try_extract(BeautifulSoup(PRIMARY_TABLE, "html.parser"))

        assert len(rows) == 2
        assert rows[0]["keyword"] == "fitness"
        assert rows[0]["cpa"] == "$1.50"
        assert rows[1]["keyword"] == "yoga"
        assert rows[1]["ctr"] == ""

    def test_missing_container_yields_nothing(self) -> None:
        strategy = TableStrategy(
            container_selectors=[".missing"],
            row_selectors=[],
            cell_selectors=[],
            fields=FIELDS,
        )

        assert strategy.try_extract(BeautifulSoup(PRIMARY_TABLE, "html.parser")) == []


class TestCardStrategy:
    def test_reads_selectors_and_shortest_pattern_match(self) -> None:
        strategy = CardStrategy(
            card_selectors=['a[class*="container"]'],
            field_selectors={"name": ['span[class*="titleText"]'], "rank": ['span[class*="rankingIndex"]']},
            field_patterns={"posts": "(?i)posts$"},
        )

        rows = strategy.try_extract(BeautifulSoup(HASHTAG_CARDS, "html.parser"))

        assert rows[0] == {"name": "# fitness", "rank": "1", "posts": "12.3K Posts"}
        assert rows[1]["posts"] == ""

    def test_drops_cards_without_any_field(self) -> None:
        strategy = CardStrategy(card_selectors=["div.card"], field_selectors={"name": ["span.name"]})

        rows = strategy.try_extract(BeautifulSoup('<div class="card"><b>ad</b></div>', "html.parser"))

        assert rows == []


class TestExtractor:
    def test_primary_strategy_wins(self) -> None:
        result = Extractor(timeout_ms=1000).extract_markup(PRIMARY_TABLE, _keyword_plan())

        assert result.strategy == "table"
        assert result.used_fallback is False
        assert len(result.rows) == 2

    def test_structural_fallback_is_flagged(self) -> None:
        result = Extractor(timeout_ms=1000).extract_markup(ROLE_TABLE, _keyword_plan())

        assert result.used_fallback is True
        assert result.rows[0]["keyword"] == "pilates"

    def test_nothing_matches(self) -> None:
        result = Extractor(timeout_ms=1000).extract_markup("<p>Nothing here</p>", _keyword_plan())

        assert result.is_empty

    def test_extract_reads_page_content(self) -> None:
        page = FakePage(PRIMARY_TABLE)

        result = asyncio.run(Extractor(timeout_ms=1000).extract(page, _keyword_plan(), label="keyword_insights"))

        assert [row["keyword"] for row in result.rows] == ["fitness", "yoga"]

    def test_wait_timeout_is_not_fatal(self) -> None:
        page = FakePage("<p>Still loading</p>")

        result = asyncio.run(Extractor(timeout_ms=1000).extract(page, _keyword_plan()))

        assert result.is_empty
        assert page.selector_queries == 1
