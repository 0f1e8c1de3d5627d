"""Transcript message entity."""

from dataclasses import dataclass
from typing import Literal, Optional

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Message:
    """A single transcript entry."""

    role: Role
    content: str
    timestamp: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate role."""
        if self.role not in ("user", "assistant"):
            raise ValueError(f"Unknown message role: {self.role}")

    def as_context_line(self) -> str:
        """Render as a role-prefixed line for ticket context."""
        return f"{self.role}: {self.content}"
