"""Conversation controller: intent-driven state machine of the widget."""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from chat_widget.application.dtos.chat import ChatReply
from chat_widget.application.dtos.lead import LeadSubmission
from chat_widget.application.dtos.submission import SubmissionResult
from chat_widget.application.dtos.support import SupportSubmission
from chat_widget.application.errors import (
    NetworkFailure,
    ServerError,
    StaleResponse,
    StorageUnavailable,
    ValidationError,
)
from chat_widget.application.ports.chat_client import ChatClient
from chat_widget.application.use_cases.feedback_recorder import FeedbackRecorder
from chat_widget.application.use_cases.history_synchronizer import HistorySynchronizer
from chat_widget.application.use_cases.lead_support_submitter import LeadSupportSubmitter
from chat_widget.application.use_cases.session_identity import SessionIdentity
from chat_widget.application.use_cases.user_messages_de import UserMessagesDE
from chat_widget.domain.entities.conversation_state import (
    ContactForm,
    ConversationMode,
    ConversationState,
)
from chat_widget.infrastructure.logging.logger import log_event, log_mode_transition

FORM_FIELDS = ("name", "email", "phone", "consent")


@dataclass(frozen=True)
class ControllerConfig:
    """Conversation flow variant."""

    lead_confirmation_step: bool = True


class ConversationController:
    """Drives plain chat, lead capture and support flows for one page lifetime.

    Modes change only on a server intent (chat reply), an explicit user
    action (support button, lead confirmation, reset) or a submission
    outcome. Responses that arrive after the session was replaced are
    dropped.
    """

    def __init__(
        self,
        session_identity: SessionIdentity,
        history_synchronizer: HistorySynchronizer,
        chat_client: ChatClient,
        feedback_recorder: FeedbackRecorder,
        submitter: LeadSupportSubmitter,
        config: Optional[ControllerConfig] = None,
    ) -> None:
        """
        Initialize conversation controller.

        Args:
            session_identity: Session id lifecycle
            history_synchronizer: Transcript loader
            chat_client: Chat collaborator
            feedback_recorder: Vote recorder
            submitter: Lead/support submitter
            config: Flow variant
        """
        self._session_identity = session_identity
        self._history = history_synchronizer
        self._chat_client = chat_client
        self._feedback = feedback_recorder
        self._submitter = submitter
        self._config = config or ControllerConfig()
        self._state = ConversationState()
        self._ephemeral = False

    @property
    def state(self) -> ConversationState:
        """Get conversation state."""
        return self._state

    @property
    def session_id(self) -> Optional[str]:
        """Get the active session id."""
        return self._state.session_id

    @property
    def mode(self) -> ConversationMode:
        """Get the active conversation mode."""
        return self._state.mode

    @property
    def is_ephemeral(self) -> bool:
        """True when storage was unavailable and the session lives in memory only."""
        return self._ephemeral

    def _set_mode(self, mode: ConversationMode, trigger: str) -> None:
        before = self._state.mode
        self._state.mode = mode
        log_mode_transition(self._state.session_id, before.value, mode.value, trigger)

    # Session lifecycle

    async def mount(self) -> str:
        """
        Establish the session and load its history.

        Returns:
            Active session id
        """
        try:
            session_id = await self._session_identity.ensure()
            self._ephemeral = False
        except StorageUnavailable as e:
            session_id = self._degrade(e)
        self._state.clear(session_id)
        await self._load_history(session_id)
        return session_id

    async def reset(self) -> str:
        """
        Start a new chat: new session id, empty transcript, idle mode, empty forms.

        Returns:
            The new session id
        """
        self._history.cancel()
        self._feedback.clear()
        self._state.clear()
        try:
            session_id = await self._session_identity.reset()
            self._ephemeral = False
        except StorageUnavailable as e:
            session_id = self._degrade(e)
        self._state.clear(session_id)
        await self._load_history(session_id)
        return session_id

    def _degrade(self, error: StorageUnavailable) -> str:
        session_id = self._session_identity.ephemeral()
        self._ephemeral = True
        log_event(
            session_id,
            "controller",
            level=logging.WARNING,
            action="storage_unavailable",
            error=str(error),
        )
        return session_id

    async def _load_history(self, session_id: str) -> None:
        self._feedback.hold()
        try:
            history = await self._history.load(session_id)
        except StaleResponse:
            return
        if self._state.session_id != session_id:
            return
        # Messages sent while the load was in flight stay after the history
        self._state.replace_transcript(history + self._state.messages)
        await self._feedback.apply_history(session_id, len(history), self._state.messages)

    # Chat

    async def send_message(self, text: str) -> Optional[ChatReply]:
        """
        Send a user message and apply the reply's intent.

        Args:
            text: User input

        Returns:
            Chat reply, or None if nothing was sent or the request failed
        """
        text = text.strip()
        if not text or not self._state.session_id or self._state.loading:
            return None
        self._state.append("user", text)
        self._state.last_user_message = text
        self._state.failed_message = None
        return await self._request_reply(text)

    async def retry_failed_message(self) -> Optional[ChatReply]:
        """
        Re-send the last message whose chat request failed.

        Returns:
            Chat reply, or None if there is nothing to retry or it failed again
        """
        text = self._state.failed_message
        if not text or self._state.loading:
            return None
        self._state.failed_message = None
        return await self._request_reply(text)

    async def _request_reply(self, text: str) -> Optional[ChatReply]:
        session_id = self._state.session_id
        self._state.loading = True
        try:
            reply = await self._chat_client.send(session_id, text)
        except (NetworkFailure, ServerError) as e:
            log_event(
                session_id,
                "controller",
                level=logging.WARNING,
                action="chat_failed",
                error=str(e),
            )
            if self._state.session_id == session_id:
                self._state.loading = False
                self._state.failed_message = text
            return None

        if self._state.session_id != session_id:
            log_event(session_id, "controller", action="stale_reply_discarded")
            return None

        self._state.loading = False
        if reply.answer:
            self._state.append("assistant", reply.answer)
        self._apply_intent(reply.intent)
        return reply

    def _apply_intent(self, intent: Optional[str]) -> None:
        if intent == "lead":
            if self._state.mode == ConversationMode.LEAD_FORM_OPEN:
                return
            self._state.lead_form.error = None
            if self._config.lead_confirmation_step:
                self._set_mode(ConversationMode.AWAITING_LEAD_CONFIRMATION, "intent:lead")
            else:
                self._set_mode(ConversationMode.LEAD_FORM_OPEN, "intent:lead")
        elif intent == "support":
            self._state.support_form.error = None
            self._set_mode(ConversationMode.SUPPORT_FORM_OPEN, "intent:support")
        else:
            self._set_mode(ConversationMode.IDLE, f"intent:{intent or 'none'}")

    # User actions

    def open_support(self) -> None:
        """Open the support form from any mode, cancelling a pending lead flow."""
        self._state.support_form.error = None
        self._set_mode(ConversationMode.SUPPORT_FORM_OPEN, "action:support")

    def confirm_lead(self) -> bool:
        """
        Accept the offer to be contacted and open the lead form.

        Returns:
            True if the controller was awaiting a lead confirmation
        """
        if self._state.mode != ConversationMode.AWAITING_LEAD_CONFIRMATION:
            return False
        self._state.append("assistant", UserMessagesDE.LEAD_CONFIRMED_ACK)
        self._set_mode(ConversationMode.LEAD_FORM_OPEN, "action:confirm_lead")
        return True

    def decline_lead(self) -> bool:
        """
        Decline the offer to be contacted and return to plain chat.

        Returns:
            True if the controller was awaiting a lead confirmation
        """
        if self._state.mode != ConversationMode.AWAITING_LEAD_CONFIRMATION:
            return False
        self._state.append("assistant", UserMessagesDE.LEAD_DECLINED_ACK)
        self._set_mode(ConversationMode.IDLE, "action:decline_lead")
        return True

    def update_lead_form(self, **fields: Any) -> None:
        """Set lead form fields (name, email, phone, consent)."""
        self._update_form(self._state.lead_form, fields)

    def update_support_form(self, **fields: Any) -> None:
        """Set support form fields (name, email, phone, consent)."""
        self._update_form(self._state.support_form, fields)

    @staticmethod
    def _update_form(form: ContactForm, fields: dict[str, Any]) -> None:
        for name, value in fields.items():
            if name not in FORM_FIELDS:
                raise ValueError(f"Unknown form field: {name}")
            if name == "consent":
                form.consent = bool(value)
            else:
                setattr(form, name, "" if value is None else str(value))

    # Submissions

    async def submit_lead(self) -> bool:
        """
        Submit the lead form.

        Returns:
            True if the lead was delivered and the controller moved to LEAD_SUBMITTED
        """
        if self._state.mode != ConversationMode.LEAD_FORM_OPEN:
            return False
        form = self._state.lead_form
        submission = LeadSubmission(
            name=form.name,
            email=form.email,
            phone=form.phone,
            consent=form.consent,
            last_user_message=self._state.last_user_message,
        )
        result = await self._submit(form, self._submitter.submit_lead, submission)
        if result is None:
            return False
        self._state.append("assistant", UserMessagesDE.LEAD_THANK_YOU)
        form.clear()
        self._set_mode(ConversationMode.LEAD_SUBMITTED, "submission:lead")
        return True

    async def submit_support(self) -> bool:
        """
        Submit the support form.

        Returns:
            True if the ticket was created and the controller moved to SUPPORT_SUBMITTED
        """
        if self._state.mode != ConversationMode.SUPPORT_FORM_OPEN:
            return False
        form = self._state.support_form
        submission = SupportSubmission(
            name=form.name,
            email=form.email,
            phone=form.phone,
            consent=form.consent,
            last_user_message=self._state.last_user_message,
        )
        result = await self._submit(form, self._submitter.submit_support, submission)
        if result is None:
            return False
        self._state.append("assistant", UserMessagesDE.SUPPORT_TICKET_CREATED)
        form.clear()
        self._set_mode(ConversationMode.SUPPORT_SUBMITTED, "submission:support")
        return True

    async def _submit(
        self,
        form: ContactForm,
        submit: Callable[..., Awaitable[SubmissionResult]],
        submission: Any,
    ) -> Optional[SubmissionResult]:
        """Run a submission; on failure set the inline form error and return None."""
        if form.submitting or not self._state.session_id:
            return None
        session_id = self._state.session_id
        form.error = None
        form.submitting = True
        try:
            result = await submit(session_id, submission, list(self._state.messages))
        except ValidationError as e:
            form.error = str(e)
            return None
        finally:
            form.submitting = False

        if self._state.session_id != session_id:
            return None
        if not result.ok:
            form.error = UserMessagesDE.SUBMISSION_FAILED
            return None
        return result

    # Feedback

    async def vote(self, message_index: int, vote: str) -> bool:
        """
        Vote on an assistant message.

        Returns:
            True if a vote was submitted

        Raises:
            ValidationError: If the target message or vote is invalid
        """
        return await self._feedback.vote(
            self._state.session_id, self._state.messages, message_index, vote
        )

    def can_vote(self, message_index: int) -> bool:
        """Check whether the vote buttons of a message are enabled."""
        messages = self._state.messages
        return (
            0 <= message_index < len(messages)
            and messages[message_index].role == "assistant"
            and not self._feedback.is_sent(message_index)
        )
