"""Per-message feedback votes with at-most-once submission."""

import logging
from typing import Optional

from chat_widget.application.dtos.feedback import FeedbackPayload
from chat_widget.application.errors import (
    NetworkFailure,
    ServerError,
    StorageUnavailable,
    ValidationError,
)
from chat_widget.application.ports.key_value_store import KeyValueStore
from chat_widget.application.ports.submission_clients import FeedbackClient
from chat_widget.application.use_cases.identity_hasher import IdentityHasher
from chat_widget.domain.entities.message import Message
from chat_widget.infrastructure.logging.logger import log_dispatch, log_event

VALID_VOTES = ("up", "down")


class FeedbackRecorder:
    """Records one up/down vote per assistant message.

    An index is marked sent only after the collaborator accepted the vote,
    so a failed submission stays retryable. When a key-value store is given,
    marks are also persisted as ``messageId -> vote`` under the hashed session
    id and survive a reload.

    While a history load is pending (``hold()``), transcript indices are
    provisional: the loaded history is merged in front of messages sent in
    the meantime. ``apply_history()`` moves the marks of those messages behind
    the history, including votes still in flight, and only then persists them.
    """

    KEY_PREFIX = "chat_widget:feedback:"

    def __init__(
        self,
        feedback_client: FeedbackClient,
        hasher: IdentityHasher,
        store: Optional[KeyValueStore] = None,
    ) -> None:
        """
        Initialize feedback recorder.

        Args:
            feedback_client: Feedback collaborator
            hasher: Session id hasher
            store: Optional durable store for sent marks
        """
        self._feedback_client = feedback_client
        self._hasher = hasher
        self._store = store
        self._sent: dict[int, str] = {}
        self._in_flight: set[int] = set()
        self._unpersisted: dict[int, str] = {}
        self._epoch = 0
        self._offset = 0
        self._holding = False

    def _make_key(self, session_id_hash: str, message_index: int) -> str:
        return f"{self.KEY_PREFIX}{session_id_hash}:{message_index}"

    def _current_index(self, message_index: int, offset_at_start: int) -> int:
        # Index of the same message after any history merged since the vote started
        return message_index + self._offset - offset_at_start

    def is_sent(self, message_index: int) -> bool:
        """Check whether voting is disabled for a message."""
        return message_index in self._sent or message_index in self._in_flight

    def sent_vote(self, message_index: int) -> Optional[str]:
        """Get the vote recorded for a message, if any."""
        return self._sent.get(message_index)

    def clear(self) -> None:
        """Forget in-memory marks (on session reset)."""
        self._sent.clear()
        self._in_flight.clear()
        self._unpersisted.clear()
        self._epoch += 1
        self._offset = 0
        self._holding = False

    def hold(self) -> None:
        """Mark transcript indices as provisional until the history is applied."""
        self._holding = True

    async def apply_history(
        self, session_id: str, history_length: int, messages: list[Message]
    ) -> None:
        """
        Re-index marks after the history was merged in front of the transcript.

        Args:
            session_id: Raw session identifier
            history_length: Number of history messages placed before local ones
            messages: Merged transcript
        """
        self._holding = False
        if history_length:
            self._sent = {i + history_length: v for i, v in self._sent.items()}
            self._in_flight = {i + history_length for i in self._in_flight}
            self._unpersisted = {i + history_length: v for i, v in self._unpersisted.items()}
            self._offset += history_length

        pending, self._unpersisted = self._unpersisted, {}
        if pending and self._store is not None:
            session_id_hash = self._hasher.hash(session_id)
            await self._persist(
                session_id,
                {self._make_key(session_id_hash, i): v for i, v in pending.items()},
            )
        await self.restore(session_id, messages)

    async def restore(self, session_id: str, messages: list[Message]) -> None:
        """
        Load persisted marks for the assistant messages of a transcript.

        Args:
            session_id: Raw session identifier
            messages: Current transcript
        """
        if self._store is None:
            return
        session_id_hash = self._hasher.hash(session_id)
        for index, message in enumerate(messages):
            if message.role != "assistant" or index in self._sent:
                continue
            try:
                stored_vote = await self._store.get(self._make_key(session_id_hash, index))
            except StorageUnavailable as e:
                log_event(
                    session_id,
                    "feedback",
                    level=logging.WARNING,
                    action="restore_failed",
                    error=str(e),
                )
                return
            if stored_vote in VALID_VOTES:
                self._sent[index] = stored_vote

    async def vote(
        self,
        session_id: Optional[str],
        messages: list[Message],
        message_index: int,
        vote: str,
    ) -> bool:
        """
        Vote on an assistant message.

        Args:
            session_id: Raw session identifier
            messages: Current transcript
            message_index: Index of the message in the transcript
            vote: "up" or "down"

        Returns:
            True if the vote was submitted, False if it was a no-op
            (already sent, in flight) or the submission failed

        Raises:
            ValidationError: If the vote or the target message is invalid
        """
        if vote not in VALID_VOTES:
            raise ValidationError(f"Unsupported vote: {vote!r}")
        if not session_id:
            raise ValidationError("No active session")
        if message_index < 0 or message_index >= len(messages):
            raise ValidationError(f"No message at index {message_index}")
        if messages[message_index].role != "assistant":
            raise ValidationError("Only assistant messages can be voted on")

        if self.is_sent(message_index):
            return False

        session_id_hash = self._hasher.hash(session_id)
        epoch = self._epoch
        offset = self._offset
        self._in_flight.add(message_index)
        try:
            if self._store is not None and not self._holding:
                try:
                    stored_vote = await self._store.get(
                        self._make_key(session_id_hash, message_index)
                    )
                except StorageUnavailable:
                    stored_vote = None
                if stored_vote in VALID_VOTES:
                    if epoch == self._epoch:
                        self._sent[self._current_index(message_index, offset)] = stored_vote
                    return False

            try:
                await self._feedback_client.submit(
                    FeedbackPayload(
                        session_id_hash=session_id_hash,
                        message_id=str(message_index),
                        vote=vote,
                        comment=None,
                    )
                )
            except (NetworkFailure, ServerError) as e:
                log_dispatch(session_id, "feedback", accepted=False, error=str(e))
                return False
        finally:
            if epoch == self._epoch:
                self._in_flight.discard(self._current_index(message_index, offset))

        if epoch != self._epoch:
            # Session was reset while the vote was in flight
            return True

        index = self._current_index(message_index, offset)
        self._sent[index] = vote
        log_dispatch(
            session_id, "feedback", accepted=True, message_id=str(message_index), vote=vote
        )

        if self._store is not None:
            if self._holding:
                self._unpersisted[index] = vote
            else:
                await self._persist(session_id, {self._make_key(session_id_hash, index): vote})
        return True

    async def _persist(self, session_id: str, items: dict[str, str]) -> None:
        try:
            await self._store.set_many(items)
        except StorageUnavailable as e:
            log_event(
                session_id,
                "feedback",
                level=logging.WARNING,
                action="persist_failed",
                error=str(e),
            )
