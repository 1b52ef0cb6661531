"""
Chatbot Router

Civic assistant conversations kept in the app-scoped session cache.
"""
from fastapi import APIRouter, Depends

from src.civicstack.api.dependencies import get_chat_assistant
from src.civicstack.api.schemas import (
    ChatAnalyticsResponse,
    ChatHistoryResponse,
    ChatMessageRequest,
    ChatReplyResponse,
    MessageResponse,
)
from src.civicstack.services.chat import ChatAssistant

router = APIRouter(prefix="/api/chatbot", tags=["chatbot"])


@router.post("/message", response_model=ChatReplyResponse)
def send_message(
    payload: ChatMessageRequest,
    assistant: ChatAssistant = Depends(get_chat_assistant),
):
    """Answer a message; the user id doubles as the session id."""
    return ChatReplyResponse(**assistant.reply(payload.user_id, payload.message))


@router.get("/history/{session_id}", response_model=ChatHistoryResponse)
def get_history(
    session_id: str,
    assistant: ChatAssistant = Depends(get_chat_assistant),
):
    """Most recent messages of a session."""
    return ChatHistoryResponse(**assistant.history(session_id))


@router.delete("/history/{session_id}", response_model=MessageResponse)
def clear_history(
    session_id: str,
    assistant: ChatAssistant = Depends(get_chat_assistant),
):
    assistant.clear(session_id)
    return MessageResponse(message="Conversation history cleared")


@router.get("/analytics", response_model=ChatAnalyticsResponse)
def get_analytics(assistant: ChatAssistant = Depends(get_chat_assistant)):
    return ChatAnalyticsResponse(analytics=assistant.analytics())
