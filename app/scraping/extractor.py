"""
Side-effect-free extraction of raw rows from a rendered page.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from app.scraping.config.models import ExtractionConfig, ExtractionStrategyConfig
from app.scraping.logging_utils import log_event
from app.scraping.parsing import CardStrategy, ExtractionStrategy, TableStrategy
from app.scraping.retry import with_timeout
from app.scraping.types import ExtractionResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionPlan:
    """
    Primary strategy, ordered structural fallbacks and selectors to await.
    """

    primary: ExtractionStrategy
    fallbacks: Sequence[ExtractionStrategy] = field(default_factory=tuple)
    wait_selectors: Sequence[str] = field(default_factory=tuple)

    @property
    def strategies(self) -> list[ExtractionStrategy]:
        return [self.primary, *self.fallbacks]

    @classmethod
    def from_config(cls, config: ExtractionConfig) -> "ExtractionPlan":
        return cls(
            primary=build_strategy(config.primary),
            fallbacks=tuple(build_strategy(item) for item in config.fallbacks),
            wait_selectors=tuple(config.wait_for),
        )


def build_strategy(config: ExtractionStrategyConfig) -> ExtractionStrategy:
    if config.kind == "table":
        return TableStrategy(
            container_selectors=config.containers,
            row_selectors=config.rows,
            cell_selectors=config.cells,
            fields=config.fields,
        )
    if config.kind == "cards":
        return CardStrategy(
            card_selectors=config.containers,
            field_selectors=config.field_selectors,
            field_patterns=config.field_patterns,
        )
    raise ValueError(f"Unsupported extraction strategy kind '{config.kind}'.")


class Extractor:
    """
    Reads rows from one markup snapshot, trying the primary strategy first.

    The page is never mutated: extraction parses `page.content()` with
    BeautifulSoup. Waiting for result containers is bounded and not retried.
    """

    def __init__(self, *, timeout_ms: int) -> None:
        self._timeout_ms = timeout_ms

    async def extract(self, page: Page, plan: ExtractionPlan, *, label: str = "view") -> ExtractionResult:
        await self._await_results(page, plan.wait_selectors, label=label)
        html = await with_timeout(
            page.content(),
            seconds=self._timeout_ms / 1000,
            label=f"extract:{label}",
        )
        return self.extract_markup(html, plan, label=label)

    def extract_markup(self, html: str, plan: ExtractionPlan, *, label: str = "view") -> ExtractionResult:
        soup = BeautifulSoup(html, "html.parser")
        for index, strategy in enumerate(plan.strategies):
            rows = strategy.try_extract(soup)
            if not rows:
                continue
            if index > 0:
                log_event(
                    logger,
                    logging.WARNING,
                    "extraction_fallback_used",
                    view=label,
                    strategy=strategy.name,
                    fallback_index=index,
                    rows=len(rows),
                )
            return ExtractionResult(rows=tuple(rows), strategy=strategy.name, used_fallback=index > 0)

        log_event(logger, logging.WARNING, "extraction_empty", view=label, strategies=len(plan.strategies))
        return ExtractionResult()

    async def _await_results(self, page: Page, selectors: Sequence[str], *, label: str) -> None:
        if not selectors:
            return
        try:
            await page.wait_for_selector(", ".join(selectors), state="attached", timeout=self._timeout_ms)
        except PlaywrightTimeoutError:
            log_event(logger, logging.WARNING, "extraction_wait_timeout", view=label, selectors=list(selectors))
        except PlaywrightError as exc:
            log_event(logger, logging.WARNING, "extraction_wait_failed", view=label, error=str(exc))
