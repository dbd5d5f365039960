from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

_ENV_FILE = Path(__file__).parent / ".env"


class Settings(BaseSettings):
    api_url: str = "http://localhost:5000/api"
    request_timeout: float = 30.0
    session_file: str = ""     # pickled cookie jar; empty = in-memory only
    login_path: str = "/login"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="NOTEVEDA_",
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
