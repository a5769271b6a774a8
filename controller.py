"""
Dashboard state: one current selection, replaced on every click.

The AI step finishes after the partial selection is published, so its result
is merged only if the store is still keyed by the coordinate that asked for it.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from assistant import DiagnosisAssistant
from config import Settings
from models import (
    AIDiagnosisResult, Coordinate, SelectedLocation, ZERO_TREND, unwrap,
)
from services.geocode import is_unknown_location, resolve_name
from services.risk import classify_risk
from services.weather import fetch_weather

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pending:
    """The selection a click published, plus its in-flight diagnosis."""
    selection: SelectedLocation
    future: Future

    def result(self, timeout=None) -> bool:
        """True if the diagnosis was merged into the current selection."""
        return self.future.result(timeout=timeout)


class SelectionStore:
    """Single-slot container; all reads and writes go through one lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current: Optional[SelectedLocation] = None

    def current(self) -> Optional[SelectedLocation]:
        with self._lock:
            return self._current

    def replace(self, selection: SelectedLocation) -> None:
        with self._lock:
            self._current = selection

    def clear(self) -> None:
        with self._lock:
            self._current = None

    def merge_diagnosis(self, coord: Coordinate, diagnosis: AIDiagnosisResult) -> bool:
        """Apply diagnosis only if the slot is still owned by coord."""
        with self._lock:
            if self._current is None or self._current.coordinate != coord:
                return False
            self._current = self._current.with_diagnosis(diagnosis)
            return True


class DashboardController:
    def __init__(self, settings: Settings, assistant: Optional[DiagnosisAssistant] = None,
                 store: Optional[SelectionStore] = None, session=None, max_workers: int = 4):
        self.settings = settings
        self.assistant = assistant or DiagnosisAssistant(settings)
        self.store = store or SelectionStore()
        self.session = session
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="diagnosis")

    @property
    def selection(self) -> Optional[SelectedLocation]:
        return self.store.current()

    def select(self, coord: Coordinate, provided_name: str) -> Optional[Pending]:
        """
        Handle a map click: weather, then place name, then risk; publish the
        partial selection and start the AI diagnosis in the background.
        Returns the published selection with the Future of the diagnosis step.
        """
        weather = unwrap(fetch_weather(coord, self.settings, session=self.session))
        if weather is None:
            return None

        resolved = unwrap(resolve_name(coord, self.settings, session=self.session))
        name = provided_name if is_unknown_location(resolved) else resolved

        selection = SelectedLocation(
            coordinate=coord,
            display_name=name,
            weather=weather,
            risk=classify_risk(weather),
            trend=list(ZERO_TREND),
        )
        self.store.replace(selection)
        logger.info("Selected %s (%s,%s)", name, coord.lat, coord.lng)

        return Pending(selection, self._executor.submit(self._diagnose, coord, name, weather))

    def _diagnose(self, coord: Coordinate, name: str, weather) -> bool:
        try:
            diagnosis = unwrap(self.assistant.diagnose(name, weather))
            applied = self.store.merge_diagnosis(coord, diagnosis)
        except Exception:
            logger.exception("AI failure for %s", name)
            return False
        if not applied:
            logger.debug("Discarding stale diagnosis for %s,%s", coord.lat, coord.lng)
        return applied

    def close(self) -> None:
        """Close the detail view."""
        self.store.clear()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
