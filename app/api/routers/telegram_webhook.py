"""
app/api/routers/telegram_webhook.py

Telegram webhook endpoint feeding the conversation state machine.
"""

from __future__ import annotations

import logging
import secrets

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from app.api.dependencies import get_conversation_machine, get_telegram_client, get_telegram_config
from app.config import TelegramSettings
from app.conversation import ConversationStateMachine
from app.schemas.telegram import TelegramUpdate, WebhookAck
from app.transport.telegram import TelegramBotClient, deliver

logger = logging.getLogger(__name__)


def verify_webhook_token(token: str, settings: TelegramSettings = Depends(get_telegram_config)) -> None:
    """
    Reject webhook calls whose path token is not the bot token.
    """

    if not settings.enabled or not settings.bot_token or not secrets.compare_digest(token, settings.bot_token):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid webhook token.",
        )


router = APIRouter(tags=["telegram"])


async def process_message(
    machine: ConversationStateMachine,
    client: TelegramBotClient,
    *,
    chat_id: int,
    user_id: int,
    text: str,
) -> None:
    """
    Run one message through the state machine and send the replies.
    """

    try:
        messages = await machine.handle_inbound_text(user_id, text)
        await deliver(client, chat_id, messages)
    except Exception:
        logger.exception("Telegram message handling failed for chat=%s", chat_id)


@router.post(
    "/webhook/{token}",
    response_model=WebhookAck,
    dependencies=[Depends(verify_webhook_token)],
)
async def telegram_webhook(
    update: TelegramUpdate,
    background_tasks: BackgroundTasks,
    machine: ConversationStateMachine = Depends(get_conversation_machine),
    client: TelegramBotClient = Depends(get_telegram_client),
) -> WebhookAck:
    """
    Acknowledge the update at once and handle the message in the background.
    """

    message = update.message
    if message is None or not message.text:
        return WebhookAck()

    user_id = message.from_user.id if message.from_user is not None else message.chat.id
    background_tasks.add_task(
        process_message,
        machine,
        client,
        chat_id=message.chat.id,
        user_id=user_id,
        text=message.text,
    )
    return WebhookAck()
