from __future__ import annotations

from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="PYWEB_", extra="ignore")

    start_url: str = "https://example.com"
    log_level: str = "INFO"
    webview_backend: str = "edge"  # edge | default
    hint_theme: str = "dark"  # dark | light
    hint_candidate_style: Optional[Dict[str, str]] = None
    hint_selected_style: Optional[Dict[str, str]] = None


def get_settings() -> Settings:
    return Settings()


settings = get_settings()
