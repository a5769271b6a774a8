import json
import logging
import re
from typing import Optional

from openai import OpenAI

from config import Settings
from models import (
    AIDiagnosisResult, Error, Fallback, Ok, ProviderResult, QUOTA_EXCEEDED,
    WeatherSnapshot, ZERO_TREND,
)

logger = logging.getLogger(__name__)

SIMULATED_DIAGNOSIS = (
    "Simulated AI: moderate risk conditions detected. Monitoring is recommended."
)

PROMPT_TEMPLATE = """
Act as an expert climatologist.
Location: {place}.
Weather: {temperature}°C, {humidity}% humidity, {wind_speed} km/h wind.

Task:
1. Write a SHORT risk diagnosis (max 30 words).
2. Estimate the forest cover (%) for the last 5 years (2020-2024) based on what is known about this area (e.g. city=low, rainforest=high, deforestation=declining).

Reply ONLY with this JSON (no markdown):
{{
  "diagnosis": "Diagnosis text...",
  "trend": [2020_val, 2021_val, 2022_val, 2023_val, 2024_val]
}}
"""

_FENCE = re.compile(r"```(?:json)?")
_HTTP_429 = re.compile(r"(?<!\d)429(?!\d)")
_RETRY_DELAY = re.compile(r'"retryDelay"\s*:\s*"(\d+)s"')


def build_prompt(place: str, weather: WeatherSnapshot) -> str:
    return PROMPT_TEMPLATE.format(
        place=place,
        temperature=weather.temperature,
        humidity=weather.humidity,
        wind_speed=weather.wind_speed,
    )


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text).strip()


def is_rate_limited(exc: Exception) -> bool:
    msg = str(exc)
    if "RESOURCE_EXHAUSTED" in msg:
        return True
    status = getattr(exc, "status_code", None)
    if status is not None:
        return status == 429
    return _HTTP_429.search(msg) is not None


def parse_diagnosis(text: str) -> AIDiagnosisResult:
    """
    JSON object with a string "diagnosis" and a list "trend".
    Raises ValueError for anything else; trend values themselves are not checked.
    """
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    diagnosis = data.get("diagnosis")
    trend = data.get("trend")
    if not isinstance(diagnosis, str):
        raise ValueError("diagnosis missing or not a string")
    if not isinstance(trend, list):
        raise ValueError("trend missing or not a list")
    return AIDiagnosisResult(narrative_text=diagnosis, trend=trend)


def extract_retry_delay(exc: Exception) -> Optional[int]:
    """Seconds from a '"retryDelay":"<N>s"' entry in the error, if any and positive."""
    texts = [str(exc)]
    body = getattr(exc, "body", None)
    if body is not None:
        texts.append(body if isinstance(body, str) else json.dumps(body, separators=(",", ":")))
    for text in texts:
        m = _RETRY_DELAY.search(text)
        if m and int(m.group(1)) > 0:
            return int(m.group(1))
    return None


class DiagnosisAssistant:
    def __init__(self, settings: Settings, client=None):
        self.settings = settings
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = OpenAI(
                api_key=self.settings.ai_api_key,
                base_url=self.settings.ai_base_url,
            )
        return self._client

    def _ask(self, model: str, prompt: str) -> AIDiagnosisResult:
        response = self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
        )
        text = response.choices[0].message.content or ""
        if not text.strip():
            raise ValueError(f"empty response from {model}")
        return parse_diagnosis(strip_code_fences(text))

    def diagnose(self, place: str, weather: WeatherSnapshot) -> ProviderResult:
        """
        Risk narrative plus 2020-2024 forest-cover estimate for a place.

        Ok(AIDiagnosisResult) on success; Fallback with canned text and a zero
        trend when no key is configured; Error carrying an AIDiagnosisResult
        with error_kind set (and retry_after_seconds on quota errors) otherwise.
        Never raises.
        """
        if not self.settings.has_ai_key:
            logger.warning("No AI API key configured; returning simulated diagnosis.")
            return Fallback(
                AIDiagnosisResult(narrative_text=SIMULATED_DIAGNOSIS, trend=list(ZERO_TREND)),
                "missing_key",
            )

        prompt = build_prompt(place, weather)
        last_error: Optional[Exception] = None

        for model in self.settings.ai_models:
            try:
                result = self._ask(model, prompt)
                logger.info("Diagnosis received from %s for %s", model, place)
                return Ok(result)
            except Exception as e:
                if is_rate_limited(e):
                    retry_after = extract_retry_delay(e)
                    logger.warning("AI quota exceeded (retry after %s s): %s", retry_after, e)
                    return Error(
                        "quota_exceeded",
                        str(e),
                        AIDiagnosisResult(
                            trend=list(ZERO_TREND),
                            error_kind=QUOTA_EXCEEDED,
                            retry_after_seconds=retry_after,
                        ),
                    )
                logger.warning("Model %s failed: %s", model, e)
                last_error = e

        message = str(last_error) if last_error else "no AI models configured"
        logger.error("AI diagnosis failed: %s", message)
        return Error(
            "request_failed",
            message,
            AIDiagnosisResult(trend=list(ZERO_TREND), error_kind=message),
        )
