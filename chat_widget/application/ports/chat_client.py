"""Chat collaborator port."""

from abc import ABC, abstractmethod

from chat_widget.application.dtos.chat import ChatReply


class ChatClient(ABC):
    """Port interface for the chat completion collaborator."""

    @abstractmethod
    async def send(self, session_id: str, message: str) -> ChatReply:
        """
        Send a user message and get the assistant reply.

        Args:
            session_id: Raw session identifier
            message: User message text

        Returns:
            Chat reply with answer and optional intent

        Raises:
            NetworkFailure: On transport failure
            ServerError: On non-success status or unreadable body
        """
        pass

    @abstractmethod
    async def generate_title(self, session_id: str, prompt: str) -> str:
        """
        Ask the collaborator for a short ticket title.

        Args:
            session_id: Raw session identifier
            prompt: Instruction text including the conversation excerpt

        Returns:
            Generated title (may be empty)

        Raises:
            NetworkFailure: On transport failure
            ServerError: On non-success status or unreadable body
        """
        pass
