"""Application settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Widget configuration settings."""

    debug_mode: bool = False

    # Collaborator endpoints
    api_base_url: str = "http://localhost:3000"
    api_key: str = ""  # Static key sent on chat/history requests in embedded mode
    embedded_mode: bool = False
    chat_path: str = "/api/chat"
    history_path: str = "/api/history"
    feedback_path: str = "/api/feedback"
    leads_path: str = "/api/leads"
    support_path: str = "/api/support"
    http_timeout_seconds: float = 30.0

    # Session identity
    session_ttl_hours: int = 48
    session_id_key: str = "yjar_chat_session_id"
    session_created_at_key: str = "yjar_chat_session_created_at"
    session_storage: str = "file"  # in_memory, file, redis or sql
    session_storage_path: str = ".chat_widget_storage.json"
    redis_url: str = "redis://localhost:6379/0"
    database_url: str = ""  # Required when session_storage=sql

    # Conversation flow
    lead_confirmation_step: bool = True
    lead_source: str = "website-chat"
    page_url: str = ""
    support_title_generation_enabled: bool = True
    support_context_lines: int = 10
    feedback_marks_durable: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
    )


settings = Settings()
