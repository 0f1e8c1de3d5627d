"""HTTP history collaborator adapter."""

from typing import Any

from chat_widget.adapters.outbound.http.http_collaborator import HttpCollaborator
from chat_widget.application.dtos.history import HistoryRequest
from chat_widget.application.errors import ServerError
from chat_widget.application.ports.history_client import HistoryClient


class HttpHistoryClient(HttpCollaborator, HistoryClient):
    """Transcript history over ``POST {sessionId} -> {messages}``."""

    async def fetch(self, session_id: str) -> dict[str, Any]:
        """
        Fetch the raw history payload.

        Args:
            session_id: Raw session identifier

        Returns:
            Decoded payload
        """
        data = await self._post(HistoryRequest(session_id=session_id).to_json_body())
        if data is None:
            return {"messages": []}
        if not isinstance(data, dict):
            raise ServerError(f"POST {self._path} returned an unexpected body")
        return data
