import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_AI_MODELS = ("gemini-2.0-flash",)

# Values shipped in the sample .env; treated the same as a missing key
PLACEHOLDER_KEYS = {"your_api_key_here", "your_gemini_key_here"}


def _clean_key(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value or value in PLACEHOLDER_KEYS:
        return None
    return value


@dataclass(frozen=True)
class Settings:
    weather_api_key: Optional[str] = None
    ai_api_key: Optional[str] = None
    ai_base_url: str = GEMINI_OPENAI_BASE_URL
    ai_models: Tuple[str, ...] = DEFAULT_AI_MODELS
    language: str = "en"
    timeout: float = 10.0
    log_level: str = "INFO"

    def __post_init__(self):
        object.__setattr__(self, "weather_api_key", _clean_key(self.weather_api_key))
        object.__setattr__(self, "ai_api_key", _clean_key(self.ai_api_key))

    @property
    def has_weather_key(self) -> bool:
        return self.weather_api_key is not None

    @property
    def has_ai_key(self) -> bool:
        return self.ai_api_key is not None


def load_settings() -> Settings:
    # Loads .env into process env; safe to call multiple times
    load_dotenv()
    models = tuple(
        m.strip() for m in os.getenv("AI_MODELS", "").split(",") if m.strip()
    ) or DEFAULT_AI_MODELS
    return Settings(
        weather_api_key=os.getenv("OPENWEATHER_API_KEY"),
        ai_api_key=os.getenv("GEMINI_API_KEY"),
        ai_base_url=os.getenv("AI_BASE_URL") or GEMINI_OPENAI_BASE_URL,
        ai_models=models,
        language=os.getenv("WEATHER_LANG") or "en",
        timeout=float(os.getenv("HTTP_TIMEOUT") or 10),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
