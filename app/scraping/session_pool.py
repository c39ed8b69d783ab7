"""
Bounded pool of concurrent browser sessions.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from playwright.async_api import Error as PlaywrightError

from app.scraping.browser import BrowserSession, BrowserSessionFactory
from app.scraping.errors import CapacityExceeded, NetworkTimeout
from app.scraping.logging_utils import log_event
from app.scraping.retry import with_timeout

logger = logging.getLogger(__name__)


class BrowserSessionPool:
    """
    Hands out at most `max_concurrent_sessions` browser sessions at a time.

    There is no queue: `acquire` fails fast with CapacityExceeded when the
    ceiling is reached. The outstanding counter is incremented before the
    session is created and decremented only after teardown.
    """

    def __init__(
        self,
        *,
        factory: BrowserSessionFactory,
        max_concurrent_sessions: int = 2,
        creation_timeout_seconds: float = 60.0,
    ) -> None:
        self._factory = factory
        self._max_concurrent_sessions = max(1, max_concurrent_sessions)
        self._creation_timeout_seconds = creation_timeout_seconds
        self._outstanding = 0
        self._active: set[str] = set()

    @property
    def factory(self) -> BrowserSessionFactory:
        return self._factory

    @property
    def outstanding(self) -> int:
        return self._outstanding

    @property
    def capacity(self) -> int:
        return self._max_concurrent_sessions

    async def acquire(self) -> BrowserSession:
        if self._outstanding >= self._max_concurrent_sessions:
            log_event(
                logger,
                logging.WARNING,
                "session_capacity_exceeded",
                outstanding=self._outstanding,
                capacity=self._max_concurrent_sessions,
            )
            raise CapacityExceeded(
                f"All {self._max_concurrent_sessions} browser sessions are busy."
            )

        self._outstanding += 1
        try:
            session = await with_timeout(
                self._factory.create(),
                seconds=self._creation_timeout_seconds,
                label="session_create",
            )
        except BaseException:
            self._outstanding -= 1
            raise

        self._active.add(session.session_id)
        log_event(
            logger,
            logging.INFO,
            "session_acquired",
            session_id=session.session_id,
            outstanding=self._outstanding,
        )
        return session

    async def release(self, session: BrowserSession) -> None:
        if session.session_id not in self._active:
            raise RuntimeError(f"Session {session.session_id} was already released.")

        self._active.discard(session.session_id)
        try:
            await with_timeout(
                self._factory.dispose(session),
                seconds=self._creation_timeout_seconds,
                label="session_dispose",
            )
        except (PlaywrightError, NetworkTimeout) as exc:
            log_event(
                logger,
                logging.WARNING,
                "session_dispose_failed",
                session_id=session.session_id,
                error=str(exc),
            )
        finally:
            self._outstanding -= 1
            log_event(
                logger,
                logging.INFO,
                "session_released",
                session_id=session.session_id,
                outstanding=self._outstanding,
            )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[BrowserSession]:
        handle = await self.acquire()
        try:
            yield handle
        finally:
            await self.release(handle)
