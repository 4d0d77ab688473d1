from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from dotenv import load_dotenv


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Uses a local .env file in development for convenience.
    """

    app_env: Literal["development", "production"] = "development"
    log_level: Literal["debug", "info", "warning", "error", "critical"] = "info"

    # Manipulation pipeline
    manipulators: List[str] = Field(
        default=["orientation", "shape", "background"],
        description="Ordered stage names run by the orchestrator",
    )
    default_params: Dict[str, str] = Field(
        default={},
        description="Manipulation params applied to every request before presets and request params",
    )
    presets: Dict[str, Dict[str, str]] = Field(
        default={},
        description="Named param groups selectable with the `p` param, e.g. {\"avatar\": {\"shape\": \"circle\"}}",
    )
    max_page: int = Field(
        default=100000,
        description="Highest page index accepted by the `page` param for paged formats",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Lazily load and cache settings to avoid re-parsing .env on each import."""
    # 1) Load backend/.env if present (works when running from repo root)
    backend_dir = Path(__file__).resolve().parents[2]
    backend_env_path = backend_dir / ".env"
    if backend_env_path.exists():
        load_dotenv(backend_env_path, override=False)

    # 2) Load nearest .env discovered from CWD upward without overriding existing vars
    load_dotenv(override=False)

    return Settings()
