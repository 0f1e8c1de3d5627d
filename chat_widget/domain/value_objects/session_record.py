"""Session record and session configuration value objects."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SessionConfig:
    """Storage key names and time-to-live of the anonymous session."""

    id_key: str = "yjar_chat_session_id"
    created_at_key: str = "yjar_chat_session_created_at"
    ttl_hours: int = 48

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.id_key or not self.created_at_key:
            raise ValueError("Session storage keys cannot be empty")
        if self.id_key == self.created_at_key:
            raise ValueError("Session storage keys must differ")
        if self.ttl_hours <= 0:
            raise ValueError("Session TTL must be positive")

    @property
    def ttl_ms(self) -> int:
        """Get time-to-live in milliseconds."""
        return self.ttl_hours * 60 * 60 * 1000


@dataclass(frozen=True)
class SessionRecord:
    """Persisted session id together with its creation time (epoch millis)."""

    id: str
    created_at: int

    def __post_init__(self) -> None:
        """Validate session record."""
        if not self.id:
            raise ValueError("Session id cannot be empty")

    def is_valid(self, now_ms: int, ttl_ms: int) -> bool:
        """Check whether the session can still be used at ``now_ms``."""
        return now_ms - self.created_at < ttl_ms

    def to_storage(self, config: SessionConfig) -> dict[str, str]:
        """Serialize to the two storage keys."""
        return {
            config.id_key: self.id,
            config.created_at_key: str(self.created_at),
        }
