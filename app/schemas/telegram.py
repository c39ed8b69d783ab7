"""
app/schemas/telegram.py

Subset of the Telegram Bot API update payload used by the webhook.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TelegramChat(BaseModel):
    id: int


class TelegramUser(BaseModel):
    id: int
    username: str | None = None


class TelegramMessage(BaseModel):
    """
    Inbound message; `from` is a Python keyword, hence the alias.
    """

    model_config = ConfigDict(populate_by_name=True)

    message_id: int
    chat: TelegramChat
    from_user: TelegramUser | None = Field(default=None, alias="from")
    text: str | None = None


class TelegramUpdate(BaseModel):
    update_id: int
    message: TelegramMessage | None = None


class WebhookAck(BaseModel):
    ok: bool = True
