"""HTTP adapters for the feedback, lead and ticketing collaborators."""

from chat_widget.adapters.outbound.http.http_collaborator import HttpCollaborator
from chat_widget.application.dtos.feedback import FeedbackPayload
from chat_widget.application.dtos.lead import LeadPayload
from chat_widget.application.dtos.support import TicketPayload
from chat_widget.application.ports.submission_clients import (
    FeedbackClient,
    LeadClient,
    TicketClient,
)


class HttpFeedbackClient(HttpCollaborator, FeedbackClient):
    """Feedback over ``POST {sessionIdHash, messageId, vote, comment}``."""

    async def submit(self, payload: FeedbackPayload) -> None:
        """Submit a vote. ``comment`` is sent as null."""
        await self._post(payload.to_json_body(exclude_none=False))


class HttpLeadClient(HttpCollaborator, LeadClient):
    """Lead storage over ``POST {sessionIdHash, name, email, ...}``."""

    async def submit(self, payload: LeadPayload) -> None:
        """Store a lead."""
        await self._post(payload.to_json_body())


class HttpTicketClient(HttpCollaborator, TicketClient):
    """Ticket creation over ``POST {sessionIdHash, ..., ticketTitle, lastMessages}``."""

    async def create(self, payload: TicketPayload) -> None:
        """Create a ticket."""
        await self._post(payload.to_json_body())
