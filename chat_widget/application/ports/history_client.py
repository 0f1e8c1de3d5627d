"""History collaborator port."""

from abc import ABC, abstractmethod
from typing import Any


class HistoryClient(ABC):
    """Port interface for the transcript history collaborator."""

    @abstractmethod
    async def fetch(self, session_id: str) -> dict[str, Any]:
        """
        Fetch the raw history payload for a session.

        Args:
            session_id: Raw session identifier

        Returns:
            Decoded JSON payload (``{"messages": [...]}`` in either shape)

        Raises:
            NetworkFailure: On transport failure
            ServerError: On non-success status or unreadable body
        """
        pass
