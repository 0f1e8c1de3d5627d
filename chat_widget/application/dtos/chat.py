"""Chat DTOs."""

from typing import Optional

from chat_widget.application.dtos.base import WireDTO


class ChatRequest(WireDTO):
    """Chat collaborator request."""

    message: str
    session_id: str
    purpose: Optional[str] = None  # "ticket-title" for title generation requests

    model_config = {
        "json_schema_extra": {
            "example": {"message": "Hallo", "sessionId": "2f1c0d7e-9a3b-4a51-8f0e-2d6c1b7a9e44"}
        }
    }


class ChatReply(WireDTO):
    """Chat collaborator response."""

    answer: str = ""
    intent: Optional[str] = None  # "lead", "support", "other" or absent

    model_config = {
        "json_schema_extra": {"example": {"answer": "Hi!", "intent": "other"}}
    }
