"""Conversation state entity."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from chat_widget.domain.entities.message import Message, Role


class ConversationMode(str, Enum):
    """Active conversation mode. Lead and support modes are mutually exclusive."""

    IDLE = "idle"
    AWAITING_LEAD_CONFIRMATION = "awaiting_lead_confirmation"
    LEAD_FORM_OPEN = "lead_form_open"
    SUPPORT_FORM_OPEN = "support_form_open"
    LEAD_SUBMITTED = "lead_submitted"
    SUPPORT_SUBMITTED = "support_submitted"


@dataclass
class ContactForm:
    """Contact form fields shared by the lead and support forms."""

    name: str = ""
    email: str = ""
    phone: str = ""
    consent: bool = False
    error: Optional[str] = None
    submitting: bool = False

    def clear(self) -> None:
        """Reset every field of the form."""
        self.name = ""
        self.email = ""
        self.phone = ""
        self.consent = False
        self.error = None
        self.submitting = False


@dataclass
class ConversationState:
    """Page-lifetime state of one conversation."""

    session_id: Optional[str] = None
    messages: list[Message] = field(default_factory=list)
    mode: ConversationMode = ConversationMode.IDLE
    loading: bool = False
    last_user_message: Optional[str] = None
    failed_message: Optional[str] = None  # User text whose chat request failed
    lead_form: ContactForm = field(default_factory=ContactForm)
    support_form: ContactForm = field(default_factory=ContactForm)

    def append(self, role: Role, content: str) -> None:
        """Append a message to the transcript."""
        self.messages.append(Message(role=role, content=content))

    def replace_transcript(self, messages: list[Message]) -> None:
        """Replace the transcript with a loaded history."""
        self.messages = list(messages)
        user_messages = [m.content for m in self.messages if m.role == "user"]
        self.last_user_message = user_messages[-1] if user_messages else None

    @property
    def lead_form_visible(self) -> bool:
        """Check whether the lead form is shown."""
        return self.mode == ConversationMode.LEAD_FORM_OPEN

    @property
    def support_form_visible(self) -> bool:
        """Check whether the support form is shown."""
        return self.mode == ConversationMode.SUPPORT_FORM_OPEN

    def clear(self, session_id: Optional[str] = None) -> None:
        """Clear transcript, mode and form state for a new session."""
        self.session_id = session_id
        self.messages = []
        self.mode = ConversationMode.IDLE
        self.loading = False
        self.last_user_message = None
        self.failed_message = None
        self.lead_form.clear()
        self.support_form.clear()
