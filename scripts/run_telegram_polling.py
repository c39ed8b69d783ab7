"""
Run the Telegram bot with long polling instead of a webhook.
"""

from __future__ import annotations

import argparse
import asyncio
import functools
import logging
import os

from app.services.insight_service import InsightService
from app.transport.telegram import ChatTaskChain, TelegramAPIError, deliver

logger = logging.getLogger(__name__)


async def _handle_update(service: InsightService, update: dict) -> None:
    message = update.get("message") or {}
    text = message.get("text")
    chat = message.get("chat") or {}
    if not text or "id" not in chat:
        return

    user_id = (message.get("from") or {}).get("id", chat["id"])
    replies = await service.machine.handle_inbound_text(user_id, text)
    await deliver(service.telegram_client, chat["id"], replies)


async def _poll(service: InsightService, *, idle_seconds: float) -> None:
    client = service.telegram_client
    await asyncio.to_thread(client.delete_webhook)
    offset: int | None = None
    chains = ChatTaskChain()

    while True:
        try:
            updates = await asyncio.to_thread(client.get_updates, offset=offset)
        except TelegramAPIError as exc:
            logger.error("getUpdates failed: %s", exc)
            await asyncio.sleep(idle_seconds)
            continue

        for update in updates:
            offset = int(update["update_id"]) + 1
            chat_id = ((update.get("message") or {}).get("chat") or {}).get("id")
            if chat_id is None:
                continue
            chains.submit(chat_id, functools.partial(_handle_update, service, update))


async def _run(idle_seconds: float) -> None:
    service = InsightService()
    try:
        await _poll(service, idle_seconds=idle_seconds)
    finally:
        await service.shutdown()


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the Telegram bot with long polling.")
    parser.add_argument(
        "--idle-seconds",
        dest="idle_seconds",
        type=float,
        default=5.0,
        help="Pause after a failed getUpdates call.",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    try:
        asyncio.run(_run(args.idle_seconds))
    except KeyboardInterrupt:
        logger.info("Polling stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
