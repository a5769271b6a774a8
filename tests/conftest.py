import threading
from types import SimpleNamespace

import pytest
import requests

from config import Settings
from models import AIDiagnosisResult, Ok


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Stands in for requests: answers by URL substring, records every call."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        for fragment, answer in self.routes.items():
            if fragment in url:
                if isinstance(answer, Exception):
                    raise answer
                return answer
        raise requests.exceptions.ConnectionError(f"no route for {url}")


class FakeCompletions:
    def __init__(self, answers):
        self.answers = list(answers)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        message = SimpleNamespace(content=answer)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_ai_client(*answers):
    completions = FakeCompletions(answers)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


class GatedAssistant:
    """Diagnosis provider whose answer for a place waits until its gate opens."""

    def __init__(self):
        self.gates = {}
        self.calls = []

    def gate(self, place):
        ev = threading.Event()
        self.gates[place] = ev
        return ev

    def diagnose(self, place, weather):
        self.calls.append(place)
        ev = self.gates.get(place)
        if ev is not None:
            ev.wait(5)
        return Ok(AIDiagnosisResult(narrative_text=f"diagnosis for {place}", trend=[80, 78, 75, 70, 66]))


@pytest.fixture
def offline_settings():
    return Settings()


@pytest.fixture
def keyed_settings():
    return Settings(weather_api_key="owm-test-key", ai_api_key="ai-test-key",
                    ai_models=("model-a", "model-b"))
