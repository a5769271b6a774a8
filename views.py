from typing import Any, Dict, Optional

from config import Settings
from models import QUOTA_EXCEEDED, RiskLevel, SelectedLocation, TREND_YEARS

DEFAULT_CENTER = (4.6097, -74.0817)  # Bogotá
DEFAULT_ZOOM = 6
CLICK_PLACEHOLDER_NAME = "Selected location"

RISK_COLORS = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "red",
}


def map_view(settings: Settings) -> Dict[str, Any]:
    """Map centre, base layers and overlays for the front-end map."""
    layers = [
        {
            "name": "OpenStreetMap",
            "type": "base",
            "checked": True,
            "url": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
            "attribution": "&copy; OpenStreetMap contributors",
        },
        {
            "name": "Esri World Imagery (Satellite)",
            "type": "base",
            "checked": False,
            "url": "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
            "attribution": "Tiles &copy; Esri",
        },
    ]
    if settings.has_weather_key:
        layers.append({
            "name": "Heat zones (OpenWeather)",
            "type": "overlay",
            "checked": False,
            "url": "https://tile.openweathermap.org/map/temp_new/{z}/{x}/{y}.png?appid="
                   + settings.weather_api_key,
            "attribution": "&copy; OpenWeather",
        })
    return {
        "title": "Risk Explorer",
        "center": {"lat": DEFAULT_CENTER[0], "lng": DEFAULT_CENTER[1]},
        "zoom": DEFAULT_ZOOM,
        "click_name": CLICK_PLACEHOLDER_NAME,
        "layers": layers,
    }


def diagnosis_section(selection: SelectedLocation) -> Dict[str, Any]:
    d = selection.diagnosis
    if d is None:
        return {"status": "loading", "text": None, "message": "Analyzing with AI..."}
    if d.error_kind == QUOTA_EXCEEDED:
        message = "AI quota exceeded."
        if d.retry_after_seconds:
            message += f" Try again in {d.retry_after_seconds} seconds."
        return {"status": "error", "text": None, "message": message,
                "retry_after": d.retry_after_seconds}
    if d.error_kind:
        return {"status": "error", "text": None, "message": d.error_kind, "retry_after": None}
    return {"status": "ready", "text": d.narrative_text, "message": None}


def detail_card(selection: Optional[SelectedLocation]) -> Optional[Dict[str, Any]]:
    if selection is None:
        return None
    w = selection.weather
    level = selection.risk.risk_level
    return {
        "location_name": selection.display_name,
        "coordinate": {
            "lat": selection.coordinate.lat,
            "lng": selection.coordinate.lng,
            "label": f"Lat: {selection.coordinate.lat:.3f} • Lng: {selection.coordinate.lng:.3f}",
        },
        "simulated": w.is_simulated,
        "banner": "Simulation mode: waiting for API key" if w.is_simulated else None,
        "risk": {"level": level.value, "color": RISK_COLORS[level]},
        "indicators": {
            "humidity": {"value": w.humidity, "unit": "%"},
            "temperature": {"value": w.temperature, "unit": "°C"},
            "wind": {"value": w.wind_speed, "unit": "km/h"},
        },
        "chart": {
            "labels": [str(y) for y in TREND_YEARS],
            "datasets": [{"label": "Forest cover (%)", "data": list(selection.trend)}],
            "y_range": [0, 100],
        },
        "diagnosis": diagnosis_section(selection),
        "complete": selection.is_complete,
    }


def card_as_text(card: Dict[str, Any]) -> str:
    """Plain-text rendering of a detail card, for the terminal."""
    lines = []
    if card["banner"]:
        lines.append(f"!! {card['banner']}")
    lines.append(f"{card['location_name']}  [{card['risk']['level']} risk]")
    lines.append(card["coordinate"]["label"])
    ind = card["indicators"]
    lines.append(
        f"Humidity {ind['humidity']['value']}% | "
        f"Temp. {ind['temperature']['value']}°C | "
        f"Wind {ind['wind']['value']} km/h"
    )
    chart = card["chart"]
    trend = ", ".join(f"{y}: {v}" for y, v in zip(chart["labels"], chart["datasets"][0]["data"]))
    lines.append(f"Forest cover (%): {trend}")
    diag = card["diagnosis"]
    shown = diag["text"] if diag["status"] == "ready" else diag["message"]
    lines.append(f"AI diagnosis: {shown or '-'}")
    return "\n".join(lines)
