"""Chat panel routes."""

from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from paperpilot.gui.helpers import error_response, parse_provider
from paperpilot.gui.state import get_workspace

router = APIRouter(prefix="/api", tags=["chat"])


class ChatPayload(BaseModel):
    """Request body for one chat turn; provider/model default to the chat settings."""
    message: str
    provider: Optional[str] = None
    model: Optional[str] = None


def _transcript() -> dict:
    chat = get_workspace().chat
    return {
        "messages": [m.to_dict() for m in chat.messages],
        "error": chat.chat_error,
    }


@router.get("/chat")
async def get_chat():
    return JSONResponse(_transcript())


@router.post("/chat")
async def send_chat(body: ChatPayload):
    """Send one message.  Provider errors come back in the transcript."""
    if not body.message.strip():
        return error_response("Message is empty.")
    provider = parse_provider(body.provider)
    if body.provider is not None and provider is None:
        return error_response(f"Unknown provider '{body.provider}'", status_code=404)
    reply = await get_workspace().send_chat(body.message.strip(), provider, body.model)
    return JSONResponse({"reply": reply.to_dict(), **_transcript()})


@router.delete("/chat")
async def clear_chat():
    """Clear the transcript and every provider's conversation."""
    get_workspace().clear_chat()
    return JSONResponse(_transcript())
