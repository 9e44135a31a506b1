from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here.
    """

    app_env: str = os.getenv("APP_ENV", "development")
    google_api_key: Optional[str] = os.getenv("GOOGLE_API_KEY") or os.getenv("GOOGLE_AI_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.7"))
    top_p: float = float(os.getenv("MODEL_TOP_P", "0.9"))
    models_api_url: str = os.getenv(
        "GEMINI_MODELS_URL", "https://generativelanguage.googleapis.com/v1beta/models"
    )
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:5173")
    port: int = int(os.getenv("PORT", "5000"))
    history_turns: int = int(os.getenv("HISTORY_TURNS", "5"))
    storage_path: str = os.getenv(
        "STORAGE_PATH", os.path.join(os.path.expanduser("~"), ".chatbot", "storage.json")
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
