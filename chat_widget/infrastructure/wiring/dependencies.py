"""Dependency injection factory functions."""

from typing import Optional

import httpx

from chat_widget.adapters.outbound.http import (
    HttpChatClient,
    HttpFeedbackClient,
    HttpHistoryClient,
    HttpLeadClient,
    HttpTicketClient,
)
from chat_widget.adapters.outbound.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    RedisKeyValueStore,
    SqlKeyValueStore,
)
from chat_widget.application.ports.key_value_store import KeyValueStore
from chat_widget.application.use_cases.conversation_controller import (
    ControllerConfig,
    ConversationController,
)
from chat_widget.application.use_cases.feedback_recorder import FeedbackRecorder
from chat_widget.application.use_cases.history_synchronizer import HistorySynchronizer
from chat_widget.application.use_cases.identity_hasher import IdentityHasher
from chat_widget.application.use_cases.lead_support_submitter import (
    LeadSupportSubmitter,
    SubmitterConfig,
)
from chat_widget.application.use_cases.session_identity import SessionIdentity
from chat_widget.domain.value_objects.session_record import SessionConfig
from chat_widget.infrastructure.config.settings import Settings, settings
from chat_widget.infrastructure.db import create_schema

API_KEY_HEADER = "x-api-key"


def create_session_config(config: Settings = settings) -> SessionConfig:
    """
    Factory function to create the session configuration.

    Returns:
        SessionConfig instance
    """
    return SessionConfig(
        id_key=config.session_id_key,
        created_at_key=config.session_created_at_key,
        ttl_hours=config.session_ttl_hours,
    )


def create_key_value_store(config: Settings = settings) -> KeyValueStore:
    """
    Factory function to create the durable key-value store.

    Returns:
        KeyValueStore instance
    """
    if config.session_storage == "in_memory":
        return InMemoryKeyValueStore()
    if config.session_storage == "file":
        return JsonFileKeyValueStore(config.session_storage_path)
    if config.session_storage == "redis":
        if not config.redis_url:
            raise ValueError("REDIS_URL is required when SESSION_STORAGE=redis")
        return RedisKeyValueStore(config.redis_url)
    if config.session_storage == "sql":
        if not config.database_url:
            raise ValueError("DATABASE_URL is required when SESSION_STORAGE=sql")
        create_schema()
        return SqlKeyValueStore()
    raise ValueError(f"Unknown SESSION_STORAGE: {config.session_storage}")


def create_http_client(config: Settings = settings) -> httpx.AsyncClient:
    """
    Factory function to create the shared HTTP client.

    Returns:
        httpx.AsyncClient bound to the collaborator base URL
    """
    return httpx.AsyncClient(
        base_url=config.api_base_url,
        timeout=config.http_timeout_seconds,
        headers={"Content-Type": "application/json"},
    )


def _api_key_headers(config: Settings) -> dict[str, str]:
    """Static API-key header, attached to chat/history requests in embedded mode."""
    if config.embedded_mode and config.api_key:
        return {API_KEY_HEADER: config.api_key}
    return {}


def create_conversation_controller(
    http_client: Optional[httpx.AsyncClient] = None,
    store: Optional[KeyValueStore] = None,
    config: Settings = settings,
) -> ConversationController:
    """
    Factory function to create ConversationController with dependencies.

    Args:
        http_client: Shared HTTP client (created from settings if omitted)
        store: Durable key-value store (created from settings if omitted)
        config: Settings to wire from

    Returns:
        ConversationController instance
    """
    http_client = http_client or create_http_client(config)
    store = store or create_key_value_store(config)
    auth_headers = _api_key_headers(config)
    hasher = IdentityHasher()

    chat_client = HttpChatClient(http_client, config.chat_path, headers=auth_headers)
    history_client = HttpHistoryClient(http_client, config.history_path, headers=auth_headers)

    session_identity = SessionIdentity(store, create_session_config(config))
    feedback_recorder = FeedbackRecorder(
        HttpFeedbackClient(http_client, config.feedback_path),
        hasher,
        store=store if config.feedback_marks_durable else None,
    )
    submitter = LeadSupportSubmitter(
        HttpLeadClient(http_client, config.leads_path),
        HttpTicketClient(http_client, config.support_path),
        chat_client,
        hasher,
        SubmitterConfig(
            lead_source=config.lead_source,
            page_url=config.page_url or None,
            context_lines=config.support_context_lines,
            title_generation_enabled=config.support_title_generation_enabled,
        ),
    )

    return ConversationController(
        session_identity,
        HistorySynchronizer(history_client),
        chat_client,
        feedback_recorder,
        submitter,
        ControllerConfig(lead_confirmation_step=config.lead_confirmation_step),
    )
