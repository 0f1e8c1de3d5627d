"""Support ticket DTOs."""

from typing import Optional

from chat_widget.application.dtos.base import DTO, WireDTO


class SupportSubmission(DTO):
    """Support form contents as entered by the user."""

    name: str = ""
    email: str = ""
    phone: str = ""
    consent: bool = False
    last_user_message: Optional[str] = None


class TicketPayload(WireDTO):
    """Ticketing collaborator request."""

    session_id_hash: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None
    last_messages: Optional[list[str]] = None
    ticket_title: Optional[str] = None
    url: Optional[str] = None
    consent: Optional[bool] = None
