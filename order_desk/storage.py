from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.engine import Engine
from sqlmodel import Session

from .models import StoredValue


# -------------------------
# Key/value operations
# -------------------------

def get_value(session: Session, key: str) -> str | None:
    stored = session.get(StoredValue, key)
    return stored.value if stored else None


def set_value(session: Session, key: str, value: str) -> StoredValue:
    stored = session.get(StoredValue, key)
    if stored is None:
        stored = StoredValue(key=key, value=value)
    else:
        stored.value = value
        stored.updated_at = datetime.now(timezone.utc)
    session.add(stored)
    session.commit()
    session.refresh(stored)
    return stored


def delete_value(session: Session, key: str) -> None:
    stored = session.get(StoredValue, key)
    if stored is None:
        return
    session.delete(stored)
    session.commit()


class TokenStorage:
    """Persists the bearer token under a single well-known key.

    Every read opens a fresh session so the token always reflects what is
    stored right now, not what was stored when the process started.
    """

    def __init__(self, engine: Engine, key: str = "token") -> None:
        self.engine = engine
        self.key = key

    def load(self) -> str | None:
        with Session(self.engine) as session:
            return get_value(session, self.key)

    def save(self, token: str) -> None:
        with Session(self.engine) as session:
            set_value(session, self.key, token)

    def clear(self) -> None:
        with Session(self.engine) as session:
            delete_value(session, self.key)
