"""Lead and support contact submission."""

import logging
from dataclasses import dataclass
from typing import Optional

from chat_widget.application.dtos.lead import LeadPayload, LeadSubmission
from chat_widget.application.dtos.submission import SubmissionResult
from chat_widget.application.dtos.support import SupportSubmission, TicketPayload
from chat_widget.application.errors import NetworkFailure, ServerError, ValidationError
from chat_widget.application.ports.chat_client import ChatClient
from chat_widget.application.ports.submission_clients import LeadClient, TicketClient
from chat_widget.application.use_cases.identity_hasher import IdentityHasher
from chat_widget.application.use_cases.user_messages_de import UserMessagesDE
from chat_widget.domain.entities.message import Message
from chat_widget.infrastructure.logging.logger import log_dispatch, log_event


@dataclass(frozen=True)
class SubmitterConfig:
    """Static values attached to lead and support submissions."""

    lead_source: str = "website-chat"
    page_url: Optional[str] = None
    context_lines: int = 10
    lead_title_max_chars: int = 80
    title_generation_enabled: bool = True
    title_max_chars: int = 120


def validate_lead(submission: LeadSubmission) -> None:
    """
    Check a lead submission before any network call.

    Raises:
        ValidationError: If name or email is empty or consent was not given
    """
    if not submission.name.strip() or not submission.email.strip():
        raise ValidationError(UserMessagesDE.LEAD_MISSING_FIELDS)
    if not submission.consent:
        raise ValidationError(UserMessagesDE.CONSENT_REQUIRED)


def validate_support(submission: SupportSubmission) -> None:
    """
    Check a support submission before any network call.

    Raises:
        ValidationError: If name is empty, both email and phone are empty,
            or consent was not given
    """
    if not submission.name.strip() or not (
        submission.email.strip() or submission.phone.strip()
    ):
        raise ValidationError(UserMessagesDE.SUPPORT_MISSING_FIELDS)
    if not submission.consent:
        raise ValidationError(UserMessagesDE.CONSENT_REQUIRED)


def _optional(value: str) -> Optional[str]:
    value = value.strip()
    return value or None


class LeadSupportSubmitter:
    """Validates and dispatches lead and support submissions.

    A lead goes to two independent collaborators, lead storage and
    ticketing. Both dispatches are attempted regardless of the other's
    outcome, and nothing is rolled back. A support request goes to ticketing
    only.
    """

    def __init__(
        self,
        lead_client: LeadClient,
        ticket_client: TicketClient,
        chat_client: ChatClient,
        hasher: IdentityHasher,
        config: Optional[SubmitterConfig] = None,
    ) -> None:
        """
        Initialize submitter.

        Args:
            lead_client: Lead storage collaborator
            ticket_client: Ticketing collaborator
            chat_client: Chat collaborator (used for ticket title generation)
            hasher: Session id hasher
            config: Submission settings
        """
        self._lead_client = lead_client
        self._ticket_client = ticket_client
        self._chat_client = chat_client
        self._hasher = hasher
        self._config = config or SubmitterConfig()

    def context_lines(self, transcript: list[Message]) -> list[str]:
        """Role-prefixed lines of the last N transcript messages."""
        if self._config.context_lines <= 0:
            return []
        return [m.as_context_line() for m in transcript[-self._config.context_lines :]]

    async def submit_lead(
        self,
        session_id: str,
        submission: LeadSubmission,
        transcript: Optional[list[Message]] = None,
    ) -> SubmissionResult:
        """
        Submit a lead to lead storage and ticketing.

        Args:
            session_id: Raw session identifier
            submission: Lead form contents
            transcript: Current transcript (attached to the ticket as context)

        Returns:
            Result listing which collaborators accepted the lead

        Raises:
            ValidationError: If the submission is incomplete (no network call made)
        """
        validate_lead(submission)
        session_id_hash = self._hasher.hash(session_id)
        name = submission.name.strip()
        email = submission.email.strip()
        phone = _optional(submission.phone)

        accepted: list[str] = []
        failed: list[str] = []

        lead_payload = LeadPayload(
            session_id_hash=session_id_hash,
            name=name,
            email=email,
            phone=phone,
            message=submission.last_user_message,
            source=self._config.lead_source,
            consent=submission.consent,
        )
        try:
            await self._lead_client.submit(lead_payload)
            accepted.append("leads")
            log_dispatch(session_id, "leads", accepted=True)
        except (NetworkFailure, ServerError) as e:
            failed.append("leads")
            log_dispatch(session_id, "leads", accepted=False, error=str(e))

        ticket_payload = TicketPayload(
            session_id_hash=session_id_hash,
            name=name,
            email=email,
            phone=phone,
            message=submission.last_user_message,
            last_messages=self.context_lines(transcript or []) or None,
            ticket_title=UserMessagesDE.lead_ticket_title(
                submission.last_user_message, self._config.lead_title_max_chars
            ),
            url=self._config.page_url,
            consent=submission.consent,
        )
        try:
            await self._ticket_client.create(ticket_payload)
            accepted.append("tickets")
            log_dispatch(session_id, "tickets", accepted=True, kind="lead")
        except (NetworkFailure, ServerError) as e:
            failed.append("tickets")
            log_dispatch(session_id, "tickets", accepted=False, kind="lead", error=str(e))

        return SubmissionResult(accepted=accepted, failed=failed)

    async def submit_support(
        self,
        session_id: str,
        submission: SupportSubmission,
        transcript: Optional[list[Message]] = None,
    ) -> SubmissionResult:
        """
        Submit a support ticket.

        Args:
            session_id: Raw session identifier
            submission: Support form contents
            transcript: Current transcript (last N lines attached as context)

        Returns:
            Result with "tickets" accepted or failed

        Raises:
            ValidationError: If the submission is incomplete (no network call made)
        """
        validate_support(submission)
        session_id_hash = self._hasher.hash(session_id)
        lines = self.context_lines(transcript or [])
        title = await self._ticket_title(session_id, lines)

        payload = TicketPayload(
            session_id_hash=session_id_hash,
            name=_optional(submission.name),
            email=_optional(submission.email),
            phone=_optional(submission.phone),
            message=submission.last_user_message,
            last_messages=lines or None,
            ticket_title=title,
            url=self._config.page_url,
            consent=submission.consent,
        )
        try:
            await self._ticket_client.create(payload)
        except (NetworkFailure, ServerError) as e:
            log_dispatch(session_id, "tickets", accepted=False, kind="support", error=str(e))
            return SubmissionResult(failed=["tickets"])

        log_dispatch(session_id, "tickets", accepted=True, kind="support", ticket_title=title)
        return SubmissionResult(accepted=["tickets"])

    async def _ticket_title(self, session_id: str, lines: list[str]) -> str:
        """Generate a support ticket title, falling back to a generic one."""
        if not self._config.title_generation_enabled or not lines:
            return UserMessagesDE.SUPPORT_TITLE_FALLBACK
        try:
            title = await self._chat_client.generate_title(
                session_id, UserMessagesDE.support_title_prompt(lines)
            )
        except (NetworkFailure, ServerError) as e:
            log_event(
                session_id,
                "submitter",
                level=logging.WARNING,
                action="title_generation_failed",
                error=str(e),
            )
            return UserMessagesDE.SUPPORT_TITLE_FALLBACK

        title = " ".join(title.split()).strip("\"'")
        if not title:
            return UserMessagesDE.SUPPORT_TITLE_FALLBACK
        return title[: self._config.title_max_chars]
