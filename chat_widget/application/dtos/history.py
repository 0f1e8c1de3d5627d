"""History DTOs."""

from typing import Literal, Optional, Union

from pydantic import AliasChoices, Field

from chat_widget.application.dtos.base import WireDTO


class HistoryRequest(WireDTO):
    """History collaborator request."""

    session_id: str


class HistoryMessage(WireDTO):
    """Message as returned by the current history contract."""

    role: Literal["user", "assistant"]
    content: str
    timestamp: Optional[Union[str, int]] = Field(
        default=None, validation_alias=AliasChoices("timestamp", "createdAt")
    )


class LegacyHistoryRecord(WireDTO):
    """Paired record as returned by the legacy history contract."""

    session_id: Optional[str] = None
    user_message: Optional[str] = None
    bot_answer: Optional[str] = None
    created_at: Optional[Union[str, int]] = None
