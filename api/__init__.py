"""FastAPI host for per-session context compaction engines."""

from api.main import app, create_app
from api.routes import context

__all__ = [
    "app",
    "create_app",
    "context",
]
