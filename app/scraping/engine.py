"""
Insight extraction pipeline engine.
"""

from __future__ import annotations

import asyncio
import logging
import time

from playwright.async_api import Error as PlaywrightError

from app.domain.insights import ExtractionRequest, PipelineOutcome
from app.scraping.browser import BrowserSessionFactory
from app.scraping.challenge import ChallengeDetector
from app.scraping.config import load_view_configs
from app.scraping.config.models import ScrapingSettings, ViewCatalog, ViewConfig
from app.scraping.diagnostics import SnapshotWriter
from app.scraping.errors import (
    ChallengeDetected,
    ControlNotFound,
    NetworkTimeout,
    NoDataFound,
    PipelineError,
)
from app.scraping.extractor import Extractor
from app.scraping.locator import ResilientLocator
from app.scraping.logging_utils import log_event
from app.scraping.navigation import NavigationProtocol
from app.scraping.registry import ScraperRegistry
from app.scraping.retry import RetryPolicy, with_timeout
from app.scraping.session_pool import BrowserSessionPool
from app.scraping.types import ViewScrapeResult
from scoring import ContentGapScorer

logger = logging.getLogger(__name__)


class InsightPipeline:
    """
    Runs one extraction request end to end and never raises.

    Every failure inside a run is converted into a PipelineOutcome carrying
    a stable failure code. The browser session is released on every path.
    """

    def __init__(
        self,
        *,
        settings: ScrapingSettings,
        catalog: ViewCatalog | None = None,
        pool: BrowserSessionPool | None = None,
        registry: ScraperRegistry | None = None,
        scorer: ContentGapScorer | None = None,
    ) -> None:
        self._settings = settings
        self._catalog = catalog or load_view_configs(config_path=settings.views_config_path)
        self._pool = pool or BrowserSessionPool(
            factory=BrowserSessionFactory(settings=settings),
            max_concurrent_sessions=settings.max_concurrent_sessions,
            creation_timeout_seconds=settings.navigation_timeout_ms / 1000,
        )
        self._registry = registry or ScraperRegistry()
        self._scorer = scorer or ContentGapScorer()

        self._navigation = NavigationProtocol(
            settings=settings,
            detector=ChallengeDetector(
                markers=self._catalog.challenge_markers,
                phrases=self._catalog.challenge_phrases,
                timeout_seconds=settings.extraction_timeout_ms / 1000,
            ),
            snapshots=SnapshotWriter(
                directory=settings.snapshot_dir,
                timeout_seconds=settings.extraction_timeout_ms / 1000,
            ),
        )
        self._locator = ResilientLocator(
            timeout_ms=settings.locator_timeout_ms,
            retry_policy=RetryPolicy(
                max_attempts=settings.locator_max_attempts,
                backoff_initial_seconds=settings.backoff_initial_seconds,
                backoff_multiplier=settings.backoff_multiplier,
                retry_on=(ControlNotFound, NetworkTimeout),
            ),
        )
        self._extractor = Extractor(timeout_ms=settings.extraction_timeout_ms)

    @property
    def pool(self) -> BrowserSessionPool:
        return self._pool

    @property
    def catalog(self) -> ViewCatalog:
        return self._catalog

    async def run(self, request: ExtractionRequest) -> PipelineOutcome:
        started = time.monotonic()
        try:
            view = self._catalog.get(request.view)
            outcome = await with_timeout(
                self._run(view, request),
                seconds=self._settings.pipeline_timeout_seconds,
                label=f"pipeline:{request.view}",
            )
        except PipelineError as exc:
            outcome = self._failure(request, exc)
        except (PlaywrightError, asyncio.TimeoutError) as exc:
            outcome = self._failure(request, NetworkTimeout("Browser operation failed.", detail=str(exc)))
        except Exception as exc:
            logger.exception("Unexpected failure while running view=%s", request.view)
            outcome = self._failure(request, PipelineError("Unexpected pipeline failure.", detail=str(exc)))

        duration_ms = int((time.monotonic() - started) * 1000)
        if outcome.succeeded:
            log_event(
                logger,
                logging.INFO,
                "pipeline_completed",
                view=request.view,
                insights=len(outcome.insights),
                cards=len(outcome.cards),
                duration_ms=duration_ms,
            )
        else:
            log_event(
                logger,
                logging.WARNING,
                "pipeline_failed",
                view=request.view,
                failure_code=outcome.failure_code,
                message=outcome.message,
                duration_ms=duration_ms,
            )
        return outcome

    async def shutdown(self) -> None:
        await self._pool.factory.shutdown()

    async def _run(self, view: ViewConfig, request: ExtractionRequest) -> PipelineOutcome:
        async with self._pool.session() as session:
            scraper = self._registry.create_scraper(
                view=view,
                settings=self._settings,
                navigation=self._navigation,
                locator=self._locator,
                extractor=self._extractor,
            )
            result = await scraper.scrape(session.page, request)
        return self._rank(request, result)

    def _rank(self, request: ExtractionRequest, result: ViewScrapeResult) -> PipelineOutcome:
        if result.insights:
            ranked = self._scorer.rank(result.insights)
            if request.min_growth_threshold is not None:
                ranked = self._scorer.filter_trending(ranked, request.min_growth_threshold)
            if request.limit:
                ranked = ranked[: request.limit]
            if not ranked:
                raise NoDataFound(f"No records on '{request.view}' passed the growth filter.")
            return PipelineOutcome(
                request=request,
                insights=ranked,
                message=f"{len(ranked)} ranked records from '{request.view}'.",
            )

        if result.cards:
            cards = result.cards[: request.limit] if request.limit else result.cards
            return PipelineOutcome(
                request=request,
                cards=cards,
                message=f"{len(cards)} records from '{request.view}'.",
            )

        raise NoDataFound(f"No records extracted from '{request.view}'.")

    @staticmethod
    def _failure(request: ExtractionRequest, exc: PipelineError) -> PipelineOutcome:
        snapshot_paths = tuple(exc.snapshot_paths) if isinstance(exc, ChallengeDetected) else ()
        return PipelineOutcome(
            request=request,
            failure_code=exc.code,
            message=str(exc),
            snapshot_paths=snapshot_paths,
        )
