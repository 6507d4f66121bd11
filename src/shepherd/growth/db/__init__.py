"""Database module for local SQLite storage."""

from .models import Base, generate_uuid, utc_now_iso
from .schemas import DocumentModel, from_iso, to_iso
from .sqlite import Database, get_db, reset_db, select_with_fallback

__all__ = [
    "Base",
    "generate_uuid",
    "utc_now_iso",
    "DocumentModel",
    "from_iso",
    "to_iso",
    "Database",
    "get_db",
    "reset_db",
    "select_with_fallback",
]
