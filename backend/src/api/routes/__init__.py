"""HTTP API route handlers."""

from . import pages, projects, sessions

__all__ = ["pages", "projects", "sessions"]
