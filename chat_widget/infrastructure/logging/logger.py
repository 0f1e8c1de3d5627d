"""Structured logger for the widget core."""

import logging
from typing import Any, Optional

_logger = logging.getLogger("chat_widget")
_logger.setLevel(logging.INFO)

if not _logger.handlers:
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO)
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    _logger.addHandler(handler)


def log_event(
    session_id: Optional[str],
    component: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """
    Log a structured event.

    Args:
        session_id: Session identifier (None before a session exists)
        component: Component name (e.g., 'session', 'history', 'controller')
        level: Log level (default: INFO)
        **kwargs: Additional structured fields to log
    """
    fields = {
        "session_id": session_id,
        "component": component,
    }
    fields.update(kwargs)

    log_parts = [f"{k}={v!r}" for k, v in fields.items()]
    _logger.log(level, " | ".join(log_parts))


def log_mode_transition(
    session_id: Optional[str],
    mode_before: str,
    mode_after: str,
    trigger: str,
) -> None:
    """
    Log a conversation mode transition.

    Args:
        session_id: Session identifier
        mode_before: Mode before the transition
        mode_after: Mode after the transition
        trigger: What caused it (intent, user action or submission outcome)
    """
    if mode_before == mode_after:
        return
    log_event(
        session_id,
        "controller",
        mode_before=mode_before,
        mode_after=mode_after,
        trigger=trigger,
    )


def log_dispatch(
    session_id: Optional[str],
    collaborator: str,
    accepted: bool,
    **kwargs: Any,
) -> None:
    """
    Log the outcome of a side-channel dispatch (lead, ticket, feedback).

    Args:
        session_id: Session identifier
        collaborator: Collaborator name
        accepted: Whether the collaborator accepted the request
        **kwargs: Additional fields
    """
    log_event(
        session_id,
        "dispatch",
        level=logging.INFO if accepted else logging.WARNING,
        collaborator=collaborator,
        accepted=accepted,
        **kwargs,
    )


logger = _logger
