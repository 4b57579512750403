from functools import lru_cache

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from .config import get_settings


def build_engine(url: str) -> Engine:
    engine_kwargs = {}
    if url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(url, echo=False, **engine_kwargs)


@lru_cache
def get_engine() -> Engine:
    return build_engine(get_settings().database_url)


def init_db(engine: Engine | None = None) -> None:
    SQLModel.metadata.create_all(engine or get_engine())
