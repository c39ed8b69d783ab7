"""
Telegram Bot API client and delivery helpers.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import requests

from app.config import TelegramSettings
from app.domain.conversation import OutboundMessage

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class TelegramAPIError(Exception):
    """Raised when a Bot API call fails after retries.

    Attributes:
        method: Bot API method name.
        status_code: HTTP status of the last response, if any.
    """

    def __init__(self, method: str, message: str, *, status_code: int | None = None) -> None:
        self.method = method
        self.status_code = status_code
        super().__init__(f"{method}: {message}")


def utf16_length(text: str) -> int:
    """Length in UTF-16 code units, which Bot API entity offsets use."""

    return len(text.encode("utf-16-le")) // 2


class TelegramBotClient:
    """
    Blocking Bot API client with retry on 429, 5xx and network errors.
    """

    def __init__(self, *, settings: TelegramSettings, session: requests.Session | None = None) -> None:
        if not settings.bot_token:
            raise ValueError("TELEGRAM_BOT_TOKEN is required for the Telegram client.")
        self._settings = settings
        self._session = session or requests.Session()
        self._base_url = f"{settings.api_base_url}/bot{settings.bot_token}"

    @property
    def call_budget_seconds(self) -> float:
        """Worst-case wall time of one non-polling call including retries."""

        settings = self._settings
        backoff = sum(
            settings.backoff_initial_seconds * settings.backoff_multiplier**attempt
            for attempt in range(settings.max_retries)
        )
        return (settings.max_retries + 1) * settings.timeout_seconds + backoff

    def send_message(self, chat_id: int | str, text: str, *, preformatted: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if preformatted:
            payload["entities"] = [{"type": "pre", "offset": 0, "length": utf16_length(text)}]
        return self._call("sendMessage", payload)

    def get_updates(self, *, offset: int | None = None, timeout: int | None = None) -> list[dict[str, Any]]:
        poll_timeout = self._settings.poll_timeout_seconds if timeout is None else timeout
        payload: dict[str, Any] = {"timeout": poll_timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        result = self._call("getUpdates", payload, read_timeout=poll_timeout + self._settings.timeout_seconds)
        return result if isinstance(result, list) else []

    def delete_webhook(self) -> None:
        self._call("deleteWebhook", {"drop_pending_updates": False})

    def _call(self, method: str, payload: dict[str, Any], *, read_timeout: float | None = None) -> Any:
        url = f"{self._base_url}/{method}"
        timeout = read_timeout or self._settings.timeout_seconds
        last_error: str = "no attempt made"
        status_code: int | None = None

        for attempt in range(self._settings.max_retries + 1):
            try:
                response = self._session.post(url, json=payload, timeout=timeout)
                status_code = response.status_code
                if status_code in RETRYABLE_STATUS_CODES:
                    last_error = f"Retryable status={status_code}"
                else:
                    body = response.json()
                    if not body.get("ok"):
                        raise TelegramAPIError(
                            method,
                            str(body.get("description", "request rejected")),
                            status_code=status_code,
                        )
                    return body.get("result")
            except (requests.Timeout, requests.ConnectionError, requests.exceptions.ChunkedEncodingError) as exc:
                last_error = str(exc)
            except ValueError as exc:
                raise TelegramAPIError(method, f"invalid JSON response: {exc}", status_code=status_code) from exc
            except requests.RequestException as exc:
                raise TelegramAPIError(method, f"request failed: {exc}", status_code=status_code) from exc

            if attempt >= self._settings.max_retries:
                break

            backoff_seconds = self._settings.backoff_initial_seconds * (
                self._settings.backoff_multiplier**attempt
            )
            logger.warning(
                "Telegram %s failed (%s); retrying in %.1fs (attempt %d/%d)",
                method,
                last_error,
                backoff_seconds,
                attempt + 1,
                self._settings.max_retries + 1,
            )
            time.sleep(backoff_seconds)

        raise TelegramAPIError(method, f"failed after retries: {last_error}", status_code=status_code)


async def deliver(client: TelegramBotClient, chat_id: int | str, messages: Sequence[OutboundMessage]) -> int:
    """
    Send outbound messages in order from a worker thread. Returns how many
    were delivered before the first failure.
    """

    delivered = 0
    for message in messages:
        try:
            await asyncio.wait_for(
                asyncio.to_thread(
                    client.send_message,
                    chat_id,
                    message.text,
                    preformatted=message.preformatted,
                ),
                timeout=client.call_budget_seconds,
            )
        except (TelegramAPIError, asyncio.TimeoutError) as exc:
            logger.error("Telegram delivery to chat=%s failed: %s", chat_id, exc)
            break
        delivered += 1
    return delivered


class ChatTaskChain:
    """
    Runs the jobs of one chat in arrival order while different chats run
    concurrently. A chat is forgotten once its last job has finished.
    """

    def __init__(self) -> None:
        self._tails: dict[int | str, asyncio.Task] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def active_chats(self) -> int:
        return len(self._tails)

    def submit(self, chat_id: int | str, job: Callable[[], Awaitable[None]]) -> asyncio.Task:
        previous = self._tails.get(chat_id)
        task = asyncio.create_task(self._chained(previous, chat_id, job))
        self._tails[chat_id] = task
        self._tasks.add(task)
        task.add_done_callback(lambda done: self._forget(chat_id, done))
        return task

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.wait(set(self._tasks))

    def _forget(self, chat_id: int | str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if self._tails.get(chat_id) is task:
            del self._tails[chat_id]

    @staticmethod
    async def _chained(
        previous: asyncio.Task | None,
        chat_id: int | str,
        job: Callable[[], Awaitable[None]],
    ) -> None:
        if previous is not None:
            await asyncio.wait({previous})
        try:
            await job()
        except Exception:
            logger.exception("Job for chat=%s failed", chat_id)
