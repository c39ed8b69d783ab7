"""
tests/test_session_pool.py

Pytest unit tests for BrowserSessionPool.

Coverage
--------
- Fail-fast capacity ceiling without queueing
- Counter bookkeeping on creation failure and creation timeout
- Browser context closed when page creation times out
- Release on every path, double release and dispose failures
"""

from __future__ import annotations

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from app.scraping.browser import BrowserSessionFactory
from app.scraping.errors import CapacityExceeded, NetworkTimeout
from app.scraping.session_pool import BrowserSessionPool
from tests.fakes import FakePage, FakeSessionFactory, make_settings


def _factory(**kwargs: object) -> FakeSessionFactory:
    return FakeSessionFactory(lambda: FakePage("<html></html>"), **kwargs)  # type: ignore[arg-type]


class _SlowContext:
    def __init__(self, new_page_delay_seconds: float) -> None:
        self._delay = new_page_delay_seconds
        self.closed = False

    def set_default_timeout(self, timeout: float) -> None:
        return None

    def set_default_navigation_timeout(self, timeout: float) -> None:
        return None

    async def new_page(self) -> FakePage:
        await asyncio.sleep(self._delay)
        return FakePage("<html></html>")

    async def close(self) -> None:
        self.closed = True


class _SlowBrowser:
    """Connected browser whose pages take `new_page_delay_seconds` to open."""

    def __init__(self, new_page_delay_seconds: float) -> None:
        self._delay = new_page_delay_seconds
        self.contexts: list[_SlowContext] = []

    def is_connected(self) -> bool:
        return True

    async def new_context(self, **kwargs: object) -> _SlowContext:
        context = _SlowContext(self._delay)
        self.contexts.append(context)
        return context


class TestCapacity:
    def test_rejects_beyond_ceiling(self) -> None:
        pool = BrowserSessionPool(factory=_factory(), max_concurrent_sessions=1)

        async def scenario() -> None:
            first = await pool.acquire()
            with pytest.raises(CapacityExceeded):
                await pool.acquire()
            await pool.release(first)
            second = await pool.acquire()
            await pool.release(second)

        asyncio.run(scenario())
        assert pool.outstanding == 0

    def test_third_acquire_fails_without_blocking(self) -> None:
        pool = BrowserSessionPool(factory=_factory(), max_concurrent_sessions=2)

        async def scenario() -> None:
            held = [await pool.acquire(), await pool.acquire()]
            with pytest.raises(CapacityExceeded):
                await asyncio.wait_for(pool.acquire(), timeout=0.5)
            for session in held:
                await pool.release(session)

        asyncio.run(scenario())
        assert pool.outstanding == 0

    def test_ceiling_is_at_least_one(self) -> None:
        assert BrowserSessionPool(factory=_factory(), max_concurrent_sessions=0).capacity == 1


class TestAcquire:
    def test_creation_failure_frees_the_slot(self) -> None:
        pool = BrowserSessionPool(factory=_factory(create_error=PlaywrightError("launch failed")))

        with pytest.raises(PlaywrightError):
            asyncio.run(pool.acquire())
        assert pool.outstanding == 0

    def test_creation_timeout(self) -> None:
        pool = BrowserSessionPool(
            factory=_factory(create_delay_seconds=1.0),
            creation_timeout_seconds=0.01,
        )

        with pytest.raises(NetworkTimeout):
            asyncio.run(pool.acquire())
        assert pool.outstanding == 0

    def test_creation_timeout_closes_the_context(self) -> None:
        browser = _SlowBrowser(new_page_delay_seconds=10.0)
        factory = BrowserSessionFactory(settings=make_settings())
        factory._browser = browser  # type: ignore[assignment]
        pool = BrowserSessionPool(factory=factory, creation_timeout_seconds=0.05)

        with pytest.raises(NetworkTimeout):
            asyncio.run(pool.acquire())

        assert pool.outstanding == 0
        assert len(browser.contexts) == 1
        assert browser.contexts[0].closed


class TestRelease:
    def test_context_manager_releases_on_error(self) -> None:
        factory = _factory()
        pool = BrowserSessionPool(factory=factory)

        async def scenario() -> None:
            async with pool.session():
                assert pool.outstanding == 1
                raise RuntimeError("scrape failed")

        with pytest.raises(RuntimeError):
            asyncio.run(scenario())
        assert pool.outstanding == 0
        assert len(factory.disposed) == 1

    def test_double_release_raises(self) -> None:
        pool = BrowserSessionPool(factory=_factory())

        async def scenario() -> None:
            session = await pool.acquire()
            await pool.release(session)
            await pool.release(session)

        with pytest.raises(RuntimeError, match="already released"):
            asyncio.run(scenario())
        assert pool.outstanding == 0

    def test_dispose_failure_is_logged_and_slot_freed(self) -> None:
        pool = BrowserSessionPool(factory=_factory(dispose_error=PlaywrightError("context gone")))

        async def scenario() -> None:
            session = await pool.acquire()
            await pool.release(session)

        asyncio.run(scenario())
        assert pool.outstanding == 0
