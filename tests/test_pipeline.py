"""
tests/test_pipeline.py

Pytest tests for the view scrapers and InsightPipeline, driven through
static markup with the bundled view catalog.

Coverage
--------
- Keyword table search, ranking, growth filter and limit
- Optional period control degrading to the view default
- Hashtag listing expansion and card conversion
- Music region filter and incomplete card filtering
- Failure codes: no data, missing control, challenge, capacity,
  pipeline timeout and unknown view
- Session release on every path
- Scraper registry resolution
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import replace

import pytest

from app.domain.insights import ExtractionRequest, PipelineOutcome
from app.failure_codes import (
    CAPACITY_EXCEEDED,
    CHALLENGE_DETECTED,
    CONTROL_NOT_FOUND,
    NETWORK_TIMEOUT,
    NO_DATA_FOUND,
    UNEXPECTED_FAILURE,
)
from app.scraping.config import load_view_configs
from app.scraping.engine import InsightPipeline
from app.scraping.extractor import Extractor
from app.scraping.registry import ScraperRegistry
from app.scraping.scrapers import PopularMusicScraper
from app.scraping.session_pool import BrowserSessionPool
from tests.fakes import FakePage, FakeSessionFactory, make_settings

CATALOG = load_view_configs(config_path="app/scraping/config/views.json")

PERIOD_CONTROLS = """
<div data-testid="cc_single_select_undefined">Last 7 Days</div>
<ul class="options"><li>Last 7 Days</li><li>Last 30 Days</li><li>Last 120 Days</li></ul>
"""

SEARCH_CONTROLS = """
<input placeholder="Search by keyword">
<button data-testid="cc_commonCom_autoComplete_seach">Search</button>
"""

KEYWORD_TABLE = """
<div class="byted-Table-Body"><table>
  <tr><td>1</td><td>fitness</td><td>12K</td><td>250%</td><td>2%</td><td>5%</td><td>$1.50</td></tr>
  <tr><td>2</td><td>yoga</td><td>8K</td><td>50%</td><td>1%</td><td>3%</td><td>$4.00</td></tr>
  <tr><td>3</td><td>running</td><td>5K</td><td>-10%</td><td>1.5%</td><td>2%</td><td>$2.00</td></tr>
</table></div>
"""

HASHTAG_PAGE = """
<div class="list">
  <a class="CardPc_container__a1" href="#"><span class="CardPc_rankingIndex__b2">1</span>
    <span class="CardPc_titleText__c3"># fitness</span><span class="CardPc_value">12.3K Posts</span></a>
  <a class="CardPc_container__a1" href="#"><span class="CardPc_rankingIndex__b2">2</span>
    <span class="CardPc_titleText__c3">#gym</span><span class="CardPc_value">1M Posts</span></a>
</div>
<div data-testid="cc_contentArea_viewmore_btn">View More</div>
"""

MORE_HASHTAGS = """
<a class="CardPc_container__a1" href="#"><span class="CardPc_rankingIndex__b2">3</span>
  <span class="CardPc_titleText__c3"># travel</span><span class="CardPc_value">500 Posts</span></a>
"""

MUSIC_PAGE = """
<input placeholder="Start typing or select from the list">
<div class="ItemCard_cardWrapper__x"><span class="ItemCard_rankingIndex__y">1</span>
  <span class="ItemCard_musicName__z">Song A</span><span class="ItemCard_autherName__w">Artist A</span></div>
<div class="ItemCard_cardWrapper__x"><span class="ItemCard_rankingIndex__y">2</span>
  <span class="ItemCard_musicName__z">Song B</span></div>
<div class="ItemCard_cardWrapper__x"><span class="ItemCard_rankingIndex__y">3</span>
  <span class="ItemCard_musicName__z">Song C</span><span class="ItemCard_autherName__w">Artist C</span></div>
"""


def _html(*parts: str) -> str:
    return "<html><body>" + "".join(parts) + "</body></html>"


def _pipeline(
    page_builder: Callable[[], FakePage],
    **overrides: object,
) -> tuple[InsightPipeline, BrowserSessionPool, list[FakePage]]:
    pages: list[FakePage] = []

    def build() -> FakePage:
        page = page_builder()
        pages.append(page)
        return page

    settings = make_settings(**overrides)
    pool = BrowserSessionPool(
        factory=FakeSessionFactory(build),  # type: ignore[arg-type]
        max_concurrent_sessions=settings.max_concurrent_sessions,
    )
    return InsightPipeline(settings=settings, catalog=CATALOG, pool=pool), pool, pages


def _run(pipeline: InsightPipeline, request: ExtractionRequest) -> PipelineOutcome:
    return asyncio.run(pipeline.run(request))


class TestKeywordInsights:
    def test_search_ranks_by_content_gap_score(self) -> None:
        pipeline, pool, pages = _pipeline(
            lambda: FakePage(_html(PERIOD_CONTROLS, SEARCH_CONTROLS, KEYWORD_TABLE))
        )

        outcome = _run(
            pipeline,
            ExtractionRequest(view="keyword_insights", keyword="fitness", period_days=30, limit=10),
        )

        assert outcome.succeeded
        assert outcome.labels == ("yoga", "fitness", "running")
        assert [record.content_gap_score for record in outcome.insights] == [200.0, 187.5, -13.33]
        assert pages[0].filled == ["fitness"]
        assert pages[0].clicked == ["Last 7 Days", "Last 30 Days", "Search"]
        assert pool.outstanding == 0

    def test_growth_filter_and_limit(self) -> None:
        pipeline, _, _ = _pipeline(lambda: FakePage(_html(SEARCH_CONTROLS, KEYWORD_TABLE)))

        filtered = _run(pipeline, ExtractionRequest(view="keyword_insights", min_growth_threshold=200.0))
        limited = _run(pipeline, ExtractionRequest(view="keyword_insights", limit=1))

        assert filtered.labels == ("fitness",)
        assert limited.labels == ("yoga",)

    def test_nothing_passes_growth_filter(self) -> None:
        pipeline, _, _ = _pipeline(lambda: FakePage(_html(KEYWORD_TABLE)))

        outcome = _run(pipeline, ExtractionRequest(view="keyword_insights", min_growth_threshold=1000.0))

        assert outcome.failure_code == NO_DATA_FOUND
        assert outcome.needs_fallback

    def test_missing_period_control_keeps_default(self) -> None:
        pipeline, _, pages = _pipeline(lambda: FakePage(_html(SEARCH_CONTROLS, KEYWORD_TABLE)))

        outcome = _run(
            pipeline,
            ExtractionRequest(view="keyword_insights", keyword="fitness", period_days=120),
        )

        assert outcome.succeeded
        assert pages[0].clicked == ["Search"]

    def test_missing_search_input(self) -> None:
        pipeline, pool, _ = _pipeline(lambda: FakePage(_html(KEYWORD_TABLE)))

        outcome = _run(pipeline, ExtractionRequest(view="keyword_insights", keyword="fitness"))

        assert outcome.failure_code == CONTROL_NOT_FOUND
        assert outcome.needs_fallback
        assert pool.outstanding == 0

    def test_empty_table(self) -> None:
        pipeline, _, _ = _pipeline(lambda: FakePage(_html(SEARCH_CONTROLS, "<p>No data</p>")))

        outcome = _run(pipeline, ExtractionRequest(view="keyword_insights", keyword="zzzz"))

        assert outcome.failure_code == NO_DATA_FOUND


class TestCardViews:
    def test_hashtags_expand_listing(self) -> None:
        def load_more(page: FakePage) -> None:
            page.append("div.list", MORE_HASHTAGS)
            page.soup.select_one("[data-testid=cc_contentArea_viewmore_btn]")["hidden"] = ""

        pipeline, _, pages = _pipeline(
            lambda: FakePage(
                _html(HASHTAG_PAGE),
                on_click={"[data-testid=cc_contentArea_viewmore_btn]": load_more},
            )
        )

        outcome = _run(pipeline, ExtractionRequest(view="popular_hashtags", limit=10))

        assert outcome.succeeded
        assert [card.name for card in outcome.cards] == ["fitness", "gym", "travel"]
        assert [card.posts for card in outcome.cards] == [12_300, 1_000_000, 500]
        assert pages[0].clicked == ["View More"]

    def test_music_region_and_incomplete_cards(self) -> None:
        pipeline, _, pages = _pipeline(lambda: FakePage(_html(MUSIC_PAGE)))

        outcome = _run(
            pipeline,
            ExtractionRequest(view="popular_music", region="United States", period_days=7, limit=10),
        )

        assert outcome.succeeded
        assert [(card.rank, card.name, card.artist) for card in outcome.cards] == [
            (1, "Song A", "Artist A"),
            (3, "Song C", "Artist C"),
        ]
        assert pages[0].filled == ["United States"]
        assert pages[0].keyboard.pressed == ["ArrowDown", "Enter"]

    def test_card_limit(self) -> None:
        pipeline, _, _ = _pipeline(lambda: FakePage(_html(MUSIC_PAGE)))

        outcome = _run(pipeline, ExtractionRequest(view="popular_music", limit=1))

        assert [card.name for card in outcome.cards] == ["Song A"]


class TestFailures:
    def test_challenge_page(self, monkeypatch: pytest.MonkeyPatch) -> None:
        extract_calls: list[str] = []

        async def spy_extract(self, page, plan, *, label: str = ""):
            extract_calls.append(label)
            raise AssertionError("extraction must not run on a challenge page")

        monkeypatch.setattr(Extractor, "extract", spy_extract)
        pipeline, pool, pages = _pipeline(
            lambda: FakePage(_html('<div class="g-recaptcha"></div>', KEYWORD_TABLE))
        )

        outcome = _run(pipeline, ExtractionRequest(view="keyword_insights", keyword="fitness"))

        assert outcome.failure_code == CHALLENGE_DETECTED
        assert extract_calls == []
        assert pages[0].filled == []
        assert pages[0].clicked == []
        assert not outcome.needs_fallback
        assert outcome.snapshot_paths == ()
        assert pool.outstanding == 0

    def test_capacity_exceeded(self) -> None:
        pipeline, pool, _ = _pipeline(lambda: FakePage(_html(KEYWORD_TABLE)), max_concurrent_sessions=1)

        async def scenario() -> PipelineOutcome:
            held = await pool.acquire()
            try:
                return await pipeline.run(ExtractionRequest(view="keyword_insights"))
            finally:
                await pool.release(held)

        outcome = asyncio.run(scenario())

        assert outcome.failure_code == CAPACITY_EXCEEDED
        assert pool.outstanding == 0

    def test_pipeline_timeout_releases_session(self) -> None:
        pipeline, pool, _ = _pipeline(
            lambda: FakePage(_html(KEYWORD_TABLE), goto_delay_seconds=1.0),
            pipeline_timeout_seconds=0.05,
        )

        outcome = _run(pipeline, ExtractionRequest(view="keyword_insights"))

        assert outcome.failure_code == NETWORK_TIMEOUT
        assert pool.outstanding == 0

    def test_unknown_view(self) -> None:
        pipeline, _, _ = _pipeline(lambda: FakePage(_html(KEYWORD_TABLE)))

        outcome = _run(pipeline, ExtractionRequest(view="popular_videos"))

        assert outcome.failure_code == UNEXPECTED_FAILURE


class TestScraperRegistry:
    def _create(self, view_name: str, **changes: object):
        view = replace(CATALOG.get(view_name), **changes)
        pipeline, _, _ = _pipeline(lambda: FakePage(""))
        return ScraperRegistry().create_scraper(
            view=view,
            settings=make_settings(),
            navigation=pipeline._navigation,
            locator=pipeline._locator,
            extractor=pipeline._extractor,
        )

    def test_dynamic_class_path(self) -> None:
        scraper = self._create(
            "keyword_insights",
            scraper_class="app.scraping.scrapers:PopularMusicScraper",
        )

        assert isinstance(scraper, PopularMusicScraper)

    def test_unknown_scraper_type(self) -> None:
        with pytest.raises(ValueError, match="Allowed types"):
            self._create("keyword_insights", scraper_type="video")

    def test_class_path_needs_colon(self) -> None:
        with pytest.raises(ValueError, match="module.path:ClassName"):
            self._create("keyword_insights", scraper_class="app.scraping.scrapers.PopularMusicScraper")
