from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

# backend/providers holds one YAML file per compared model
DEFAULT_PROVIDERS_DIR = Path(__file__).parent.parent / "providers"


class Settings(BaseSettings):
    # Pocketbase
    pocketbase_url: str = "http://pocketbase:8090"
    pocketbase_admin_email: Optional[str] = None
    pocketbase_admin_password: Optional[str] = None

    # Result storage: pocketbase, memory
    result_store: str = "pocketbase"

    # Providers: mock (drip streams, no tokens spent) or live (pydantic-ai)
    provider_mode: str = "mock"
    providers_dir: Path = DEFAULT_PROVIDERS_DIR

    # HTTP
    cors_origin: str = "http://localhost:3000"

    # Max events buffered per run before branch producers wait
    event_buffer_size: int = 256

    # App settings
    log_level: str = "INFO"

    @field_validator("pocketbase_url")
    @classmethod
    def pocketbase_url_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("POCKETBASE_URL is required and cannot be empty")
        return v

    @field_validator("result_store")
    @classmethod
    def result_store_known(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("pocketbase", "memory"):
            raise ValueError("RESULT_STORE must be 'pocketbase' or 'memory'")
        return v

    @field_validator("provider_mode")
    @classmethod
    def provider_mode_known(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("mock", "live"):
            raise ValueError("PROVIDER_MODE must be 'mock' or 'live'")
        return v

    @field_validator("event_buffer_size")
    @classmethod
    def event_buffer_size_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("EVENT_BUFFER_SIZE must be at least 1")
        return v

    @property
    def use_live_providers(self) -> bool:
        return self.provider_mode == "live"

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
