"""SQLite-backed persistence: the document cache and repository bindings."""

from .configs import ConfigStore
from .database import Database
from .documents import LocalStore

__all__ = ["ConfigStore", "Database", "LocalStore"]
