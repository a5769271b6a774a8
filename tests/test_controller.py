from assistant import SIMULATED_DIAGNOSIS, DiagnosisAssistant
from config import Settings
from controller import DashboardController, SelectionStore
from models import AIDiagnosisResult, Coordinate, Ok
from services.geocode import OPENWEATHER_GEO_URL
from services.risk import classify_risk
from services.simulation import simulated_weather
from services.weather import OPENWEATHER_URL
from conftest import FakeResponse, FakeSession, GatedAssistant, fake_ai_client

A = Coordinate(4.61, -74.08)
B = Coordinate(-3.46, -62.21)


def test_click_without_credentials(offline_settings):
    controller = DashboardController(offline_settings)
    try:
        future = controller.select(A, "Selected location")
        assert future.result(timeout=5) is True

        sel = controller.selection
        expected = simulated_weather(A)
        assert sel.weather == expected
        assert sel.weather.is_simulated is True
        assert sel.display_name == "Selected location"
        assert sel.risk == classify_risk(expected)
        assert sel.diagnosis.narrative_text == SIMULATED_DIAGNOSIS
        assert sel.trend == [0, 0, 0, 0, 0]
    finally:
        controller.shutdown()


def test_partial_selection_is_published_before_ai(offline_settings):
    assistant = GatedAssistant()
    gate = assistant.gate("Selected location")
    controller = DashboardController(offline_settings, assistant=assistant)
    try:
        future = controller.select(A, "Selected location")
        sel = controller.selection
        assert sel.diagnosis is None
        assert not sel.is_complete
        assert sel.trend == [0, 0, 0, 0, 0]

        gate.set()
        future.result(timeout=5)
        assert controller.selection.is_complete
        assert controller.selection.trend == [80, 78, 75, 70, 66]
    finally:
        controller.shutdown()


def test_stale_diagnosis_does_not_overwrite_new_selection(offline_settings):
    assistant = GatedAssistant()
    gate_a = assistant.gate("Point A")
    controller = DashboardController(offline_settings, assistant=assistant)
    try:
        future_a = controller.select(A, "Point A")
        future_b = controller.select(B, "Point B")
        assert future_b.result(timeout=5) is True
        before = controller.selection
        assert before.coordinate == B
        assert before.diagnosis.narrative_text == "diagnosis for Point B"

        gate_a.set()
        assert future_a.result(timeout=5) is False
        assert controller.selection == before
    finally:
        controller.shutdown()


def test_close_discards_late_diagnosis(offline_settings):
    assistant = GatedAssistant()
    gate = assistant.gate("Point A")
    controller = DashboardController(offline_settings, assistant=assistant)
    try:
        future = controller.select(A, "Point A")
        controller.close()
        gate.set()
        assert future.result(timeout=5) is False
        assert controller.selection is None
    finally:
        controller.shutdown()


def test_resolved_name_wins_over_provided(keyed_settings):
    session = FakeSession({
        OPENWEATHER_GEO_URL: FakeResponse(200, [{"name": "Bogotá", "state": "Bogota", "country": "CO"}]),
        OPENWEATHER_URL: FakeResponse(200, {"main": {"humidity": 30, "temp": 31.2}, "wind": {"speed": 1}}),
    })
    client = fake_ai_client('{"diagnosis": "Dry and hot.", "trend": [40, 39, 38, 37, 36]}')
    assistant = DiagnosisAssistant(keyed_settings, client=client)
    controller = DashboardController(keyed_settings, assistant=assistant, session=session)
    try:
        controller.select(A, "Selected location").result(timeout=5)
        sel = controller.selection
        assert sel.display_name == "Bogotá, Bogota, CO"
        assert sel.weather.is_simulated is False
        assert sel.risk.risk_level.value == "High"
        assert sel.trend == [40, 39, 38, 37, 36]
        # weather is fetched before the place name
        assert [c["url"] for c in session.calls] == [OPENWEATHER_URL, OPENWEATHER_GEO_URL]
    finally:
        controller.shutdown()


def test_unknown_name_falls_back_to_provided(keyed_settings):
    session = FakeSession({
        OPENWEATHER_GEO_URL: FakeResponse(200, []),
        OPENWEATHER_URL: FakeResponse(200, {"main": {"humidity": 80, "temp": 18}, "wind": {"speed": 3}}),
    })
    controller = DashboardController(keyed_settings, assistant=GatedAssistant(), session=session)
    try:
        controller.select(A, "Selected location").result(timeout=5)
        assert controller.selection.display_name == "Selected location"
    finally:
        controller.shutdown()


def test_missing_weather_aborts_without_state_change(offline_settings, monkeypatch):
    monkeypatch.setattr("controller.fetch_weather", lambda *a, **k: Ok(None))
    controller = DashboardController(offline_settings, assistant=GatedAssistant())
    try:
        assert controller.select(A, "Point A") is None
        assert controller.selection is None
    finally:
        controller.shutdown()


def test_store_merge_requires_matching_key():
    store = SelectionStore()
    assert store.merge_diagnosis(A, AIDiagnosisResult()) is False


def test_wrongly_shaped_ai_reply_still_completes(keyed_settings):
    client = fake_ai_client('{"diagnosis": "Dry.", "trend": null}', '{"diagnosis": "Dry.", "trend": 12}')
    assistant = DiagnosisAssistant(keyed_settings, client=client)
    controller = DashboardController(offline_settings_for(keyed_settings), assistant=assistant)
    try:
        assert controller.select(A, "Point A").result(timeout=5) is True
        sel = controller.selection
        assert sel.is_complete
        assert sel.diagnosis.error_kind
        assert sel.diagnosis.narrative_text is None
        assert sel.trend == [0, 0, 0, 0, 0]
    finally:
        controller.shutdown()


def offline_settings_for(settings):
    # AI key kept, weather key dropped so no HTTP session is needed
    return Settings(ai_api_key=settings.ai_api_key, ai_models=settings.ai_models)


def test_non_list_trend_merges_as_zeros(offline_settings):
    assistant = GatedAssistant()
    controller = DashboardController(offline_settings, assistant=assistant)
    try:
        controller.select(A, "Point A").result(timeout=5)
        assert controller.store.merge_diagnosis(A, AIDiagnosisResult(narrative_text="x", trend=None))
        assert controller.selection.trend == [0, 0, 0, 0, 0]
        assert controller.selection.is_complete
    finally:
        controller.shutdown()


def test_select_returns_published_selection(offline_settings):
    controller = DashboardController(offline_settings, assistant=GatedAssistant())
    try:
        pending = controller.select(A, "Point A")
        controller.select(B, "Point B").result(timeout=5)
        assert pending.selection.coordinate == A
        assert pending.selection.display_name == "Point A"
        assert controller.selection.coordinate == B
    finally:
        controller.shutdown()
