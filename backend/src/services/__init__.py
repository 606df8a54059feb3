"""Service layer for business logic and persistence."""

from .config import AppConfig, get_config, reload_config
from .database import DatabaseService, init_database
from .edit_session_service import EditSessionService
from .edit_session_store import EditSessionStore, is_expired
from .project_service import ProjectNotFoundError, ProjectService

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "DatabaseService",
    "init_database",
    "EditSessionService",
    "EditSessionStore",
    "is_expired",
    "ProjectService",
    "ProjectNotFoundError",
]
