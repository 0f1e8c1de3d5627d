"""Anonymous session identity lifecycle."""

import time
from typing import Callable, Optional
from uuid import uuid4

from chat_widget.application.ports.key_value_store import KeyValueStore
from chat_widget.domain.value_objects.session_record import SessionConfig, SessionRecord
from chat_widget.infrastructure.logging.logger import log_event


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_session_id() -> str:
    return str(uuid4())


class SessionIdentity:
    """Creates, restores and expires the anonymous session id.

    The id and its creation time are persisted together in the key-value
    store, so a restored id always comes with the time it was created.
    """

    def __init__(
        self,
        store: KeyValueStore,
        config: Optional[SessionConfig] = None,
        clock: Callable[[], int] = _now_ms,
        id_factory: Callable[[], str] = _new_session_id,
    ) -> None:
        """
        Initialize session identity.

        Args:
            store: Durable key-value store
            config: Storage key names and TTL (defaults to SessionConfig())
            clock: Returns the current time in epoch milliseconds
            id_factory: Generates new session ids
        """
        self._store = store
        self._config = config or SessionConfig()
        self._clock = clock
        self._id_factory = id_factory
        self._current: Optional[str] = None

    @property
    def config(self) -> SessionConfig:
        """Get session configuration."""
        return self._config

    async def load(self) -> Optional[SessionRecord]:
        """
        Read the persisted session record.

        Returns:
            Session record, or None if either key is missing or unparseable

        Raises:
            StorageUnavailable: If the store cannot be read
        """
        stored_id = await self._store.get(self._config.id_key)
        stored_created_at = await self._store.get(self._config.created_at_key)
        if not stored_id or not stored_created_at:
            return None
        try:
            created_at = int(stored_created_at)
        except ValueError:
            return None
        return SessionRecord(id=stored_id, created_at=created_at)

    async def ensure(self) -> str:
        """
        Return the stored session id, creating a new one if absent or expired.

        Returns:
            Session id valid for at least a moment longer

        Raises:
            StorageUnavailable: If the store cannot be read or written
        """
        now = self._clock()
        record = await self.load()
        if record is not None and record.is_valid(now, self._config.ttl_ms):
            log_event(record.id, "session", action="restored", created_at=record.created_at)
            self._current = record.id
            return record.id

        if record is not None:
            self._current = record.id
        new_record = await self._persist_new(now)
        log_event(
            new_record.id,
            "session",
            action="created",
            reason="expired" if record is not None else "missing",
        )
        return new_record.id

    async def reset(self) -> str:
        """
        Replace the session id unconditionally.

        Returns:
            The new session id

        Raises:
            StorageUnavailable: If the store cannot be written
        """
        new_record = await self._persist_new(self._clock())
        log_event(new_record.id, "session", action="reset")
        return new_record.id

    def ephemeral(self) -> str:
        """Generate an in-memory-only session id for when storage is unavailable."""
        self._current = self._new_id()
        log_event(self._current, "session", action="ephemeral")
        return self._current

    async def _persist_new(self, now: int) -> SessionRecord:
        record = SessionRecord(id=self._new_id(), created_at=now)
        await self._store.set_many(record.to_storage(self._config))
        self._current = record.id
        return record

    def _new_id(self) -> str:
        # A replacement id never equals the one it replaces
        new_id = self._id_factory()
        while new_id == self._current:
            new_id = self._id_factory()
        return new_id
