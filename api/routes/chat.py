"""
Chat routes of the reference service.

GOVERNANCE:
- Replies are canned, derived from the seeded context
- The client sends the full transcript with every message
"""

import uuid

from fastapi import APIRouter, HTTPException

from api.models.chat import (
    ChatMessageRequest,
    ChatMessageResponse,
    ChatStartRequest,
    ChatStartResponse,
    EndChatRequest,
)

router = APIRouter(prefix="/chat", tags=["chat"])

# chat session id -> seeded context
_chats: dict[str, ChatStartRequest] = {}


@router.post("/start", response_model=ChatStartResponse)
def start_chat(request: ChatStartRequest):
    """Open a chat session seeded with profile and reports."""
    session_id = str(uuid.uuid4())
    _chats[session_id] = request

    main = next((r for r in request.reports if r.get("is_main")), None)
    if main is not None:
        urgency = main.get("report_data", {}).get("urgency_level", "unknown")
        message = (
            f"Hi! I'm Remy. I've read your latest report (urgency: {urgency}). "
            "What would you like to know?"
        )
    else:
        message = "Hi! I'm Remy. How can I help you today?"

    return ChatStartResponse(
        session_id=session_id,
        message=message,
        is_first=not request.reports,
    )


@router.post("/message", response_model=ChatMessageResponse)
def send_message(request: ChatMessageRequest):
    """Reply to the last user message of the transcript."""
    context = _chats.get(request.session_id)
    if context is None:
        raise HTTPException(status_code=404, detail="Chat session not found")

    last_user = next(
        (m.content for m in reversed(request.history) if m.role == "user"), None
    )
    if last_user is None:
        raise HTTPException(status_code=400, detail="No user message in history")

    return ChatMessageResponse(
        message=(
            f"You said: {last_user}. I know {len(context.profile_data)} things "
            f"about you and {len(context.reports)} of your reports."
        )
    )


@router.post("/end")
def end_chat(request: EndChatRequest):
    """Discard a chat session."""
    _chats.pop(request.session_id, None)
    return {"status": "ended"}
