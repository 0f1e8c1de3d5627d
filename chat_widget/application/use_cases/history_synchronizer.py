"""Transcript history reconciliation."""

import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from chat_widget.application.dtos.history import HistoryMessage, LegacyHistoryRecord
from chat_widget.application.errors import NetworkFailure, ServerError, StaleResponse
from chat_widget.application.ports.history_client import HistoryClient
from chat_widget.domain.entities.message import Message
from chat_widget.infrastructure.logging.logger import log_event


def _timestamp(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def expand_history_payload(payload: Any) -> list[Message]:
    """
    Reconstruct the transcript from a history payload.

    Accepts ``{"messages": [...]}`` where each entry is either a message
    (``role``/``content``) or a legacy paired record
    (``userMessage``/``botAnswer``). A legacy record expands to the user
    message followed by the assistant message; empty halves are skipped.

    Args:
        payload: Decoded JSON body from the history collaborator

    Returns:
        Messages in chronological order (empty for malformed payloads)
    """
    if not isinstance(payload, dict):
        return []
    raw_messages = payload.get("messages")
    if not isinstance(raw_messages, list):
        return []

    messages: list[Message] = []
    for item in raw_messages:
        if not isinstance(item, dict):
            continue
        try:
            if "role" in item:
                entry = HistoryMessage.model_validate(item)
                messages.append(
                    Message(
                        role=entry.role,
                        content=entry.content,
                        timestamp=_timestamp(entry.timestamp),
                    )
                )
            else:
                record = LegacyHistoryRecord.model_validate(item)
                timestamp = _timestamp(record.created_at)
                if record.user_message:
                    messages.append(
                        Message(role="user", content=record.user_message, timestamp=timestamp)
                    )
                if record.bot_answer:
                    messages.append(
                        Message(role="assistant", content=record.bot_answer, timestamp=timestamp)
                    )
        except PydanticValidationError as e:
            log_event(
                None,
                "history",
                level=logging.WARNING,
                action="skip_entry",
                error=str(e.errors()[0]["msg"]) if e.errors() else str(e),
            )
    return messages


class HistorySynchronizer:
    """Loads the prior transcript of a session, discarding stale responses.

    Every load is tagged with the session id it was issued for. A newer load
    or a call to ``cancel()`` supersedes it; the superseded load then raises
    ``StaleResponse`` instead of returning messages.
    """

    def __init__(self, history_client: HistoryClient) -> None:
        """
        Initialize history synchronizer.

        Args:
            history_client: History collaborator
        """
        self._history_client = history_client
        self._generation = 0
        self._active_session_id: Optional[str] = None

    @property
    def active_session_id(self) -> Optional[str]:
        """Session id of the load currently in flight, if any."""
        return self._active_session_id

    def cancel(self) -> None:
        """Supersede any in-flight load."""
        self._generation += 1
        self._active_session_id = None

    async def load(self, session_id: str) -> list[Message]:
        """
        Load the transcript for a session.

        Transport failures and non-success responses yield an empty
        transcript; they are logged and not retried.

        Args:
            session_id: Session id the load is issued for

        Returns:
            Messages in chronological order

        Raises:
            StaleResponse: If the active session changed while loading
        """
        self._generation += 1
        generation = self._generation
        self._active_session_id = session_id

        try:
            payload = await self._history_client.fetch(session_id)
            messages = expand_history_payload(payload)
        except (NetworkFailure, ServerError) as e:
            log_event(
                session_id,
                "history",
                level=logging.WARNING,
                action="load_failed",
                error=str(e),
            )
            messages = []

        if generation != self._generation or self._active_session_id != session_id:
            log_event(session_id, "history", action="stale_discarded")
            raise StaleResponse(session_id)

        self._active_session_id = None
        log_event(session_id, "history", action="loaded", messages_count=len(messages))
        return messages
