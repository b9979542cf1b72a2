"""Concept chat route."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from app.api.schemas.chat import ChatRequest, ChatResponse
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.ai_client import GenerationClient, get_generation_client
from app.services.concept_chat import answer_question

router = APIRouter()


@router.post("/chat", response_model=ChatResponse, tags=["chat"])
def chat(
    payload: ChatRequest,
    http_request: Request,
    client: Optional[GenerationClient] = Depends(get_generation_client),
) -> ChatResponse:
    """Answer a learning question; replies with an apology when the AI is unavailable."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("chat.answer", metadata={"message_length": len(payload.message)}, user_id=payload.user_id, request_id=request_id):
        reply, available = answer_question(client, payload.message)
    log_metric("chat.answer.ai_available", 1 if available else 0)
    return ChatResponse(response=reply, ai_available=available, request_id=request_id or "")
