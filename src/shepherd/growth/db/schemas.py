"""Shared pydantic helpers for store documents.

Stored documents use camelCase field names (``userId``, ``challengeData``,
``currentProgress``). Record schemas subclass ``DocumentModel`` so they accept
either spelling and serialize back to the document shape.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def coerce_timestamp(value: Any) -> Any:
    """Normalize stored timestamp representations before validation.

    Accepts ISO strings, datetimes, epoch seconds and the exported
    ``{"seconds": ..., "nanoseconds": ...}`` server-timestamp form. Empty
    strings become None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None:
            return None
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
        return datetime.fromtimestamp(seconds + nanos / 1e9, tz=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return value


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize an optional datetime for storage."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def from_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse an optional stored ISO timestamp."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class DocumentModel(BaseModel):
    """Base for records that mirror a store document."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the camelCase document shape."""
        return self.model_dump(by_alias=True, mode="json", exclude={"id"})
