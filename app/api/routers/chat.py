"""
app/api/routers/chat.py

Plain completion endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_completion_service
from app.schemas.insights import ChatResponse
from llm_synthesis import CompletionService, CompletionUnavailableError

router = APIRouter(tags=["chat"])


@router.get("/chat", response_model=ChatResponse)
async def chat(
    prompt: str = Query(default="Tell me a joke", max_length=4000),
    completion: CompletionService = Depends(get_completion_service),
) -> ChatResponse:
    """
    Return a single completion for `prompt`.
    """

    try:
        reply = await completion.complete(prompt.strip() or "Tell me a joke")
    except CompletionUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate response.",
        ) from exc
    return ChatResponse(reply=reply)
