from __future__ import annotations

from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


class StoredValue(SQLModel, table=True):
    """A persisted client-side value, keyed like browser local storage."""

    key: str = Field(primary_key=True)
    value: str
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


__all__ = ["StoredValue"]
