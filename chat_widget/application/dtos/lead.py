"""Lead DTOs."""

from typing import Optional

from chat_widget.application.dtos.base import DTO, WireDTO


class LeadSubmission(DTO):
    """Lead form contents as entered by the user."""

    name: str = ""
    email: str = ""
    phone: str = ""
    consent: bool = False
    last_user_message: Optional[str] = None


class LeadPayload(WireDTO):
    """Lead storage collaborator request."""

    session_id_hash: str
    name: str
    email: str
    phone: Optional[str] = None
    message: Optional[str] = None
    source: str
    consent: Optional[bool] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "sessionIdHash": "9f86d081884c7d659a2feaa0c55ad015a3bf4f1b2b0b822cd15d6c15b0f00a08",
                "name": "Erika Mustermann",
                "email": "erika@example.com",
                "message": "Was kostet das Premium-Paket?",
                "source": "website-chat",
                "consent": True,
            }
        }
    }
