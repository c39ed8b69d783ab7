"""
Messaging transports.
"""

from app.transport.telegram import ChatTaskChain, TelegramAPIError, TelegramBotClient, deliver

__all__ = ["ChatTaskChain", "TelegramAPIError", "TelegramBotClient", "deliver"]
