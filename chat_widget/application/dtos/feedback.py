"""Feedback DTOs."""

from typing import Literal, Optional

from chat_widget.application.dtos.base import WireDTO

Vote = Literal["up", "down"]


class FeedbackPayload(WireDTO):
    """Feedback collaborator request. ``comment`` is always sent, as null."""

    session_id_hash: str
    message_id: str
    vote: Vote
    comment: Optional[str] = None
