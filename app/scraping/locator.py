"""
Resilient resolution of UI controls on dynamic pages.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from app.scraping.errors import ControlNotFound, NetworkTimeout
from app.scraping.logging_utils import log_event
from app.scraping.parsing import clean_text
from app.scraping.retry import RetryPolicy

logger = logging.getLogger(__name__)

CONTROL_KIND_SELECTORS = {
    "input": "input, textarea, [contenteditable='true'], [role='combobox'], [role='searchbox']",
    "button": "button, [role='button'], a, [data-testid]",
    "select": "select, [role='listbox'], [role='combobox'], [data-testid]",
    "option": "option, [role='option'], li, [data-option-id], span, div",
}
# Upper bound on elements inspected per content scan.
MAX_SCAN_ELEMENTS = 400
_TEXT_ATTRIBUTES = ("placeholder", "aria-label", "title", "value")


async def is_usable(handle: ElementHandle) -> bool:
    """Visible and enabled right now; False if the element went stale."""

    try:
        return await handle.is_visible() and await handle.is_enabled()
    except PlaywrightError:
        return False


class LocatorStrategy(ABC):
    """
    One attempt at resolving a control.
    """

    description: str = "strategy"

    @abstractmethod
    async def try_locate(self, page: Page) -> ElementHandle | None:
        """
        Return a visible, enabled element or None.
        """


class SelectorStrategy(LocatorStrategy):
    """
    Waits briefly for one candidate selector to become visible.
    """

    def __init__(self, selector: str, *, timeout_ms: int) -> None:
        self.selector = selector
        self.timeout_ms = timeout_ms
        self.description = f"selector:{selector}"

    async def try_locate(self, page: Page) -> ElementHandle | None:
        try:
            handle = await page.wait_for_selector(self.selector, state="visible", timeout=self.timeout_ms)
        except PlaywrightTimeoutError:
            return None
        except PlaywrightError as exc:
            log_event(logger, logging.DEBUG, "selector_rejected", selector=self.selector, error=str(exc))
            return None
        if handle is not None and await is_usable(handle):
            return handle
        return None


class TextScanStrategy(LocatorStrategy):
    """
    Scans every control of a kind for visible text, placeholder or label
    matching one of the hints.

    Exact matches win over substring matches; among substring matches the
    element with the shortest text wins.
    """

    def __init__(self, *, kind: str, hints: Sequence[str]) -> None:
        self.kind = kind
        self.hints = [clean_text(hint).lower() for hint in hints if clean_text(hint)]
        self.description = f"text_scan:{kind}"

    async def try_locate(self, page: Page) -> ElementHandle | None:
        if not self.hints:
            return None
        selector = CONTROL_KIND_SELECTORS.get(self.kind, CONTROL_KIND_SELECTORS["button"])
        try:
            handles = await page.query_selector_all(selector)
        except PlaywrightError:
            return None

        partial: list[tuple[int, ElementHandle]] = []
        for handle in handles[:MAX_SCAN_ELEMENTS]:
            if not await is_usable(handle):
                continue
            for text in await self._texts(handle):
                if text in self.hints:
                    return handle
                if any(hint in text for hint in self.hints):
                    partial.append((len(text), handle))
        if not partial:
            return None
        return min(partial, key=lambda item: item[0])[1]

    @staticmethod
    async def _texts(handle: ElementHandle) -> list[str]:
        texts: list[str] = []
        try:
            texts.append(await handle.inner_text())
            for attribute in _TEXT_ATTRIBUTES:
                value = await handle.get_attribute(attribute)
                if value:
                    texts.append(value)
        except PlaywrightError:
            return []
        return [clean_text(text).lower() for text in texts if clean_text(text)]


class ResilientLocator:
    """
    Resolves controls through ordered strategies under a bounded retry
    policy and performs verified interactions on them.
    """

    def __init__(
        self,
        *,
        timeout_ms: int,
        retry_policy: RetryPolicy | None = None,
        choose_delay_ms: int = 1500,
    ) -> None:
        self._timeout_ms = timeout_ms
        self._retry_policy = retry_policy or RetryPolicy(
            max_attempts=2,
            retry_on=(ControlNotFound, NetworkTimeout),
        )
        self._choose_delay_ms = choose_delay_ms

    def strategies_for(
        self,
        candidates: Sequence[str],
        *,
        kind: str,
        text_hints: Sequence[str] = (),
    ) -> list[LocatorStrategy]:
        strategies: list[LocatorStrategy] = [
            SelectorStrategy(selector, timeout_ms=self._timeout_ms) for selector in candidates
        ]
        if text_hints:
            strategies.append(TextScanStrategy(kind=kind, hints=text_hints))
        return strategies

    async def locate(
        self,
        page: Page,
        candidates: Sequence[str],
        *,
        kind: str,
        text_hints: Sequence[str] = (),
        label: str = "control",
    ) -> ElementHandle:
        strategies = self.strategies_for(candidates, kind=kind, text_hints=text_hints)

        async def attempt() -> ElementHandle:
            for strategy in strategies:
                handle = await strategy.try_locate(page)
                if handle is not None:
                    log_event(
                        logger,
                        logging.DEBUG,
                        "control_located",
                        control=label,
                        strategy=strategy.description,
                    )
                    return handle
            raise ControlNotFound(
                f"Control '{label}' not found.",
                detail=", ".join(strategy.description for strategy in strategies) or "no candidates",
            )

        return await self._retry_policy.run(attempt, label=f"locate:{label}")

    async def query_usable(self, page: Page, candidates: Sequence[str]) -> ElementHandle | None:
        """
        Return the first candidate that is usable right now, without waiting.
        """

        for selector in candidates:
            try:
                handle = await page.query_selector(selector)
            except PlaywrightError:
                continue
            if handle is not None and await is_usable(handle):
                return handle
        return None

    async def fill(
        self,
        page: Page,
        candidates: Sequence[str],
        value: str,
        *,
        text_hints: Sequence[str] = (),
        label: str = "input",
    ) -> None:
        handle = await self._verified(page, candidates, kind="input", text_hints=text_hints, label=label)
        await handle.fill(value, timeout=self._timeout_ms)

    async def click(
        self,
        page: Page,
        candidates: Sequence[str],
        *,
        kind: str = "button",
        text_hints: Sequence[str] = (),
        label: str = "button",
    ) -> None:
        handle = await self._verified(page, candidates, kind=kind, text_hints=text_hints, label=label)
        await self._click_with_enter_fallback(page, handle, label=label)

    async def select_option(
        self,
        page: Page,
        trigger_candidates: Sequence[str],
        option_candidates: Sequence[str],
        *,
        option_label: str,
        trigger_hints: Sequence[str] = (),
        option_hints: Sequence[str] = (),
        label: str = "select",
    ) -> None:
        """
        Choose `option_label` in a native `<select>` or a custom dropdown.
        """

        trigger = await self._verified(
            page,
            trigger_candidates,
            kind="select",
            text_hints=trigger_hints,
            label=f"{label}_trigger",
        )
        tag_name = await trigger.evaluate("el => el.tagName.toLowerCase()")
        if tag_name == "select":
            await trigger.select_option(label=option_label, timeout=self._timeout_ms)
            return

        await self._click_with_enter_fallback(page, trigger, label=f"{label}_trigger")
        option = await self._verified(
            page,
            option_candidates,
            kind="option",
            text_hints=[*option_hints, option_label],
            label=f"{label}_option",
        )
        await self._click_with_enter_fallback(page, option, label=f"{label}_option")

    async def type_and_choose(
        self,
        page: Page,
        input_candidates: Sequence[str],
        value: str,
        *,
        trigger_candidates: Sequence[str] = (),
        text_hints: Sequence[str] = (),
        label: str = "autocomplete",
    ) -> None:
        """
        Open an autocomplete (if a trigger is configured), type `value` and
        accept the first suggestion.
        """

        if trigger_candidates:
            try:
                await self.click(page, trigger_candidates, kind="select", label=f"{label}_trigger")
            except ControlNotFound as exc:
                log_event(logger, logging.WARNING, "autocomplete_trigger_missing", control=label, error=str(exc))

        handle = await self._verified(page, input_candidates, kind="input", text_hints=text_hints, label=label)
        await handle.click(timeout=self._timeout_ms)
        await handle.fill(value, timeout=self._timeout_ms)
        await page.wait_for_timeout(self._choose_delay_ms)
        await page.keyboard.press("ArrowDown")
        await page.keyboard.press("Enter")

    async def _verified(
        self,
        page: Page,
        candidates: Sequence[str],
        *,
        kind: str,
        text_hints: Sequence[str],
        label: str,
    ) -> ElementHandle:
        handle = await self.locate(page, candidates, kind=kind, text_hints=text_hints, label=label)
        if await is_usable(handle):
            return handle

        # Page re-rendered between locating and acting.
        handle = await self.locate(page, candidates, kind=kind, text_hints=text_hints, label=label)
        if await is_usable(handle):
            return handle
        raise ControlNotFound(f"Control '{label}' is no longer visible or enabled.")

    async def _click_with_enter_fallback(self, page: Page, handle: ElementHandle, *, label: str) -> None:
        try:
            await handle.click(timeout=self._timeout_ms)
            return
        except PlaywrightError as exc:
            log_event(logger, logging.WARNING, "click_fallback_enter", control=label, error=str(exc))

        try:
            await page.keyboard.press("Enter")
        except PlaywrightError as exc:
            raise ControlNotFound(f"Control '{label}' could not be activated.", detail=str(exc)) from exc
