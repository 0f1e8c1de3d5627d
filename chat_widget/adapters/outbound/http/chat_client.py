"""HTTP chat collaborator adapter."""

from typing import Any

from chat_widget.adapters.outbound.http.http_collaborator import HttpCollaborator
from chat_widget.application.dtos.chat import ChatReply, ChatRequest
from chat_widget.application.errors import ServerError
from chat_widget.application.ports.chat_client import ChatClient

TITLE_PURPOSE = "ticket-title"


class HttpChatClient(HttpCollaborator, ChatClient):
    """Chat completion over ``POST {message, sessionId} -> {answer, intent?}``."""

    def _to_reply(self, data: Any) -> ChatReply:
        if not isinstance(data, dict):
            raise ServerError(f"POST {self._path} returned an unexpected body")
        answer = data.get("answer")
        intent = data.get("intent")
        return ChatReply(
            answer=answer if isinstance(answer, str) else "",
            intent=intent if isinstance(intent, str) else None,
        )

    async def send(self, session_id: str, message: str) -> ChatReply:
        """
        Send a user message.

        Args:
            session_id: Raw session identifier
            message: User message text

        Returns:
            Chat reply
        """
        request = ChatRequest(message=message, session_id=session_id)
        return self._to_reply(await self._post(request.to_json_body()))

    async def generate_title(self, session_id: str, prompt: str) -> str:
        """
        Ask for a ticket title through the chat endpoint.

        The request is tagged with ``purpose="ticket-title"``.

        Args:
            session_id: Raw session identifier
            prompt: Title instruction with conversation excerpt

        Returns:
            Generated title text (may be empty)
        """
        request = ChatRequest(message=prompt, session_id=session_id, purpose=TITLE_PURPOSE)
        reply = self._to_reply(await self._post(request.to_json_body()))
        return reply.answer.strip()
