from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_env: str = "development"
    log_level: str = "INFO"

    # Layered YAML configuration
    config_root: str = "config"
    config_overlay: Optional[str] = None   # dev | staging | prod
    tenant: Optional[str] = None

    # Provider keys (override llm.adapters entries when set)
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    ollama_base_url: str = "http://localhost:11434"

    @property
    def overlay(self) -> Optional[str]:
        if self.config_overlay:
            return self.config_overlay
        # dev overlay by default outside production
        return "dev" if self.is_development else None

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
