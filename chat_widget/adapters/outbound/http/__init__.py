"""HTTP collaborator adapters."""

from chat_widget.adapters.outbound.http.chat_client import HttpChatClient
from chat_widget.adapters.outbound.http.history_client import HttpHistoryClient
from chat_widget.adapters.outbound.http.submission_clients import (
    HttpFeedbackClient,
    HttpLeadClient,
    HttpTicketClient,
)

__all__ = [
    "HttpChatClient",
    "HttpFeedbackClient",
    "HttpHistoryClient",
    "HttpLeadClient",
    "HttpTicketClient",
]
