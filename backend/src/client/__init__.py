"""Client-side helpers for talking to the studio API."""

from .api_client import StudioApiClient, StudioApiError
from .session_agent import EditSessionAgent, LoggingNotifier, SessionNotifier, generate_session_id

__all__ = [
    "StudioApiClient",
    "StudioApiError",
    "EditSessionAgent",
    "LoggingNotifier",
    "SessionNotifier",
    "generate_session_id",
]
