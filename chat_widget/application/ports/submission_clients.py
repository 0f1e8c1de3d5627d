"""Side-channel submission collaborator ports."""

from abc import ABC, abstractmethod

from chat_widget.application.dtos.feedback import FeedbackPayload
from chat_widget.application.dtos.lead import LeadPayload
from chat_widget.application.dtos.support import TicketPayload


class FeedbackClient(ABC):
    """Port interface for the feedback collaborator."""

    @abstractmethod
    async def submit(self, payload: FeedbackPayload) -> None:
        """
        Submit a vote.

        Raises:
            NetworkFailure: On transport failure
            ServerError: On non-success status
        """
        pass


class LeadClient(ABC):
    """Port interface for the lead storage collaborator."""

    @abstractmethod
    async def submit(self, payload: LeadPayload) -> None:
        """
        Store a lead.

        Raises:
            NetworkFailure: On transport failure
            ServerError: On non-success status
        """
        pass


class TicketClient(ABC):
    """Port interface for the ticketing collaborator."""

    @abstractmethod
    async def create(self, payload: TicketPayload) -> None:
        """
        Create a ticket.

        Raises:
            NetworkFailure: On transport failure
            ServerError: On non-success status
        """
        pass
