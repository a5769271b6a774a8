from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, List, Any, Union

TREND_YEARS = (2020, 2021, 2022, 2023, 2024)
ZERO_TREND = (0, 0, 0, 0, 0)

QUOTA_EXCEEDED = "QUOTA_EXCEEDED"


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float


@dataclass(frozen=True)
class WeatherSnapshot:
    humidity: int       # %
    temperature: int    # °C
    wind_speed: int     # km/h
    is_simulated: bool


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class RiskAssessment:
    risk_level: RiskLevel


@dataclass(frozen=True)
class AIDiagnosisResult:
    narrative_text: Optional[str] = None
    trend: List[Any] = field(default_factory=lambda: list(ZERO_TREND))
    error_kind: Optional[str] = None
    retry_after_seconds: Optional[int] = None


@dataclass(frozen=True)
class SelectedLocation:
    coordinate: Coordinate
    display_name: str
    weather: WeatherSnapshot
    risk: RiskAssessment
    trend: List[Any] = field(default_factory=lambda: list(ZERO_TREND))
    diagnosis: Optional[AIDiagnosisResult] = None  # None while the AI call is pending

    @property
    def is_complete(self) -> bool:
        return self.diagnosis is not None

    def with_diagnosis(self, diagnosis: AIDiagnosisResult) -> "SelectedLocation":
        trend = diagnosis.trend if isinstance(diagnosis.trend, (list, tuple)) else ZERO_TREND
        return replace(self, diagnosis=diagnosis, trend=list(trend))


# ---------------- Tagged provider results ----------------

@dataclass(frozen=True)
class Ok:
    payload: Any


@dataclass(frozen=True)
class Fallback:
    payload: Any
    reason: str


@dataclass(frozen=True)
class Error:
    kind: str
    detail: str
    payload: Any = None


ProviderResult = Union[Ok, Fallback, Error]


def unwrap(result: ProviderResult) -> Any:
    """Payload carried by any tagged result."""
    return result.payload
