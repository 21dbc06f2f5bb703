"""Free-form fitness questions with optional per-conversation memory."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from fitcoach.api.routes.plans import get_plan_generator
from fitcoach.api.schemas.plan import AskResponse, ConversationClearedResponse
from fitcoach.core.errors import GenerationFailure
from fitcoach.observability.tracing import trace
from fitcoach.services.conversation_memory import ConversationMemory, ask_with_memory
from fitcoach.services.plan_generator import PlanGenerator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/fitness", tags=["conversation"])


@lru_cache
def get_conversation_memory() -> ConversationMemory:
    return ConversationMemory()


@router.get("/ask", response_model=AskResponse)
def ask_question(
    http_request: Request,
    question: str = Query(default=""),
    conversation_id: Optional[str] = Query(default=None, alias="conversationId"),
    generator: PlanGenerator = Depends(get_plan_generator),
    memory: ConversationMemory = Depends(get_conversation_memory),
) -> AskResponse:
    """Answer a fitness question; earlier turns are replayed when ``conversationId`` is given."""
    request_id = getattr(http_request.state, "request_id", None)
    if not question.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Question parameter cannot be empty")

    metadata = {"conversation": bool(conversation_id)}
    try:
        with trace("conversation.ask", metadata=metadata, request_id=request_id):
            answer = ask_with_memory(generator, memory, question.strip(), conversation_id)
    except GenerationFailure as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return AskResponse(answer=answer, conversation_id=conversation_id, request_id=request_id or "")


@router.delete("/conversation/{conversation_id}", response_model=ConversationClearedResponse)
def clear_conversation(
    conversation_id: str,
    memory: ConversationMemory = Depends(get_conversation_memory),
) -> ConversationClearedResponse:
    existed = memory.clear(conversation_id)
    logger.info("Cleared conversation %s (existed=%s)", conversation_id, existed)
    return ConversationClearedResponse(
        success=True,
        conversation_id=conversation_id,
        message="Conversation history cleared successfully",
    )
