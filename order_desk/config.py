from functools import lru_cache
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    api_base_url: str = "http://localhost:3333"
    database_url: str = "sqlite:///./order_desk.db"
    token_storage_key: str = "token"
    request_timeout: float = 10.0
    allow_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "ORDER_DESK_"

    @field_validator("allow_origins", mode="before")
    @classmethod
    def split_origins(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if value is None:
            return []
        return value

    @field_validator("api_base_url")
    @classmethod
    def ensure_trailing_slash(cls, value: str) -> str:
        return value if value.endswith("/") else f"{value}/"


@lru_cache
def get_settings() -> Settings:
    return Settings()
