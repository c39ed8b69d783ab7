"""
tests/test_telegram_client.py

Pytest unit tests for the Telegram Bot API client and delivery.

Coverage
--------
- Preformatted messages sent with a UTF-16 sized `pre` entity
- Retry on 429, 5xx and connection errors, bounded by max_retries
- Rejected calls raised without retry
- Long polling payload
- Delivery stops at the first failed message
- Per-chat job ordering and cleanup of finished chats
"""

from __future__ import annotations

import asyncio

import pytest
import requests

from app.config import TelegramSettings
from app.domain.conversation import OutboundMessage
from app.transport.telegram import ChatTaskChain, TelegramAPIError, TelegramBotClient, deliver, utf16_length

SETTINGS = TelegramSettings(
    bot_token="123:abc",
    max_retries=2,
    backoff_initial_seconds=0.0,
    backoff_multiplier=1.0,
)


class FakeResponse:
    def __init__(self, status_code: int, body: object = None) -> None:
        self.status_code = status_code
        self._body = body

    def json(self) -> object:
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body


class FakeHTTPSession:
    def __init__(self, *responses: object) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, dict, float]] = []

    def post(self, url: str, json: dict, timeout: float) -> FakeResponse:
        self.calls.append((url, json, timeout))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(*responses: object) -> tuple[TelegramBotClient, FakeHTTPSession]:
    session = FakeHTTPSession(*responses)
    return TelegramBotClient(settings=SETTINGS, session=session), session  # type: ignore[arg-type]


OK = FakeResponse(200, {"ok": True, "result": {"message_id": 1}})


class TestSendMessage:
    def test_plain_message(self) -> None:
        client, session = _client(OK)

        client.send_message(7, "hello")

        url, payload, _ = session.calls[0]
        assert url == "https://api.telegram.org/bot123:abc/sendMessage"
        assert payload == {"chat_id": 7, "text": "hello"}

    def test_preformatted_entity_counts_utf16_units(self) -> None:
        client, session = _client(OK)

        client.send_message(7, "ok 😀", preformatted=True)

        assert session.calls[0][1]["entities"] == [{"type": "pre", "offset": 0, "length": 5}]

    def test_utf16_length(self) -> None:
        assert utf16_length("abc") == 3
        assert utf16_length("😀") == 2


class TestRetries:
    def test_retries_rate_limit_then_succeeds(self) -> None:
        client, session = _client(FakeResponse(429), requests.ConnectionError("reset"), OK)

        assert client.send_message(7, "hi") == {"message_id": 1}
        assert len(session.calls) == 3

    def test_gives_up_after_max_retries(self) -> None:
        client, session = _client(FakeResponse(503), FakeResponse(502), FakeResponse(500))

        with pytest.raises(TelegramAPIError) as excinfo:
            client.send_message(7, "hi")

        assert excinfo.value.status_code == 500
        assert len(session.calls) == 3

    def test_rejected_call_is_not_retried(self) -> None:
        client, session = _client(FakeResponse(400, {"ok": False, "description": "Bad Request: chat not found"}))

        with pytest.raises(TelegramAPIError, match="chat not found"):
            client.send_message(7, "hi")
        assert len(session.calls) == 1

    def test_invalid_json(self) -> None:
        client, _ = _client(FakeResponse(200))

        with pytest.raises(TelegramAPIError, match="invalid JSON"):
            client.send_message(7, "hi")

    def test_chunked_encoding_error_is_retried(self) -> None:
        client, session = _client(requests.exceptions.ChunkedEncodingError("broken"), OK)

        assert client.send_message(7, "hi") == {"message_id": 1}
        assert len(session.calls) == 2

    def test_other_request_errors_become_api_errors(self) -> None:
        client, session = _client(requests.exceptions.InvalidURL("bad url"))

        with pytest.raises(TelegramAPIError, match="request failed") as excinfo:
            client.get_updates(offset=None)

        assert isinstance(excinfo.value.__cause__, requests.RequestException)
        assert len(session.calls) == 1


class TestPolling:
    def test_get_updates_payload(self) -> None:
        client, session = _client(FakeResponse(200, {"ok": True, "result": [{"update_id": 5}]}))

        updates = client.get_updates(offset=5, timeout=10)

        _, payload, timeout = session.calls[0]
        assert updates == [{"update_id": 5}]
        assert payload == {"timeout": 10, "allowed_updates": ["message"], "offset": 5}
        assert timeout == 10 + SETTINGS.timeout_seconds

    def test_requires_token(self) -> None:
        with pytest.raises(ValueError):
            TelegramBotClient(settings=TelegramSettings(bot_token=None))


class TestDeliver:
    def test_stops_at_first_failure(self) -> None:
        client, session = _client(OK, FakeResponse(403, {"ok": False, "description": "Forbidden"}), OK)
        messages = [OutboundMessage("one"), OutboundMessage("two"), OutboundMessage("three")]

        delivered = asyncio.run(deliver(client, 7, messages))

        assert delivered == 1
        assert len(session.calls) == 2


class TestChatTaskChain:
    def test_jobs_of_one_chat_run_in_order(self) -> None:
        order: list[str] = []

        def job(name: str, delay: float):
            async def run() -> None:
                await asyncio.sleep(delay)
                order.append(name)

            return run

        async def scenario() -> None:
            chains = ChatTaskChain()
            chains.submit(1, job("a1", 0.02))
            chains.submit(2, job("b1", 0.0))
            chains.submit(1, job("a2", 0.0))
            await chains.drain()

        asyncio.run(scenario())

        assert order.index("a1") < order.index("a2")
        assert order[0] == "b1"

    def test_finished_chats_are_forgotten(self) -> None:
        async def noop() -> None:
            return None

        async def scenario() -> ChatTaskChain:
            chains = ChatTaskChain()
            for chat_id in range(500):
                chains.submit(chat_id, noop)
                chains.submit(chat_id, noop)
            await chains.drain()
            await asyncio.sleep(0)
            return chains

        assert asyncio.run(scenario()).active_chats == 0

    def test_failed_job_does_not_block_the_chat(self) -> None:
        ran: list[str] = []

        async def broken() -> None:
            raise RuntimeError("boom")

        async def after() -> None:
            ran.append("after")

        async def scenario() -> None:
            chains = ChatTaskChain()
            chains.submit(7, broken)
            chains.submit(7, after)
            await chains.drain()

        asyncio.run(scenario())

        assert ran == ["after"]
