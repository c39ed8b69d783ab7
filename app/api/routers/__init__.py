"""
app/api/routers package marker.
"""

from app.api.routers.chat import router as chat_router
from app.api.routers.insights import router as insights_router
from app.api.routers.telegram_webhook import router as telegram_webhook_router

__all__ = [
    "chat_router",
    "insights_router",
    "telegram_webhook_router",
]
