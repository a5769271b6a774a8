# app.py
import atexit
import logging
from typing import Optional

from flask import Flask, request, jsonify
from flask_cors import CORS

from config import Settings, load_settings
from controller import DashboardController
from models import Coordinate
from views import CLICK_PLACEHOLDER_NAME, detail_card, map_view

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None,
               controller: Optional[DashboardController] = None) -> Flask:
    settings = settings or load_settings()
    if controller is None:
        controller = DashboardController(settings)
        atexit.register(controller.shutdown)

    app = Flask(__name__)
    CORS(app)
    app.config["SETTINGS"] = settings
    app.extensions["dashboard"] = controller

    logger.info("Weather key: %s", "present" if settings.has_weather_key else "missing (simulation)")
    logger.info("AI key: %s", "present" if settings.has_ai_key else "missing (simulated diagnosis)")

    @app.route("/", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({"status": "ok", "message": "ForestWatch backend is running"})

    @app.route("/api/map", methods=["GET"])
    def map_config():
        return jsonify(map_view(settings))

    @app.route("/api/select", methods=["POST"])
    def select():
        """
        Map click. Body: {"lat": float, "lng": float, "name": str (optional)}.
        Returns the detail card as soon as weather and place name are known;
        the AI diagnosis arrives later via GET /api/selection.
        """
        body = request.get_json(silent=True) or {}
        if "lat" not in body or "lng" not in body:
            return jsonify({"error": "Missing lat or lng"}), 400
        try:
            coord = Coordinate(float(body["lat"]), float(body["lng"]))
        except (TypeError, ValueError):
            return jsonify({"error": "lat and lng must be numbers"}), 400

        name = body.get("name") or CLICK_PLACEHOLDER_NAME
        pending = controller.select(coord, name)
        published = pending.selection if pending else None
        return jsonify({"selection": detail_card(published)})

    @app.route("/api/selection", methods=["GET"])
    def current_selection():
        return jsonify({"selection": detail_card(controller.selection)})

    @app.route("/api/selection", methods=["DELETE"])
    def close_selection():
        controller.close()
        return jsonify({"success": True})

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Not Found"}), 404

    @app.errorhandler(500)
    def internal_error(error):
        logger.error("Unhandled error: %s", error)
        return jsonify({"error": "Internal Server Error"}), 500

    return app


if __name__ == "__main__":
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="[%(levelname)s] %(message)s")
    logger.info("Starting ForestWatch Flask backend...")
    create_app(settings).run(debug=True, host="0.0.0.0", port=5000, use_reloader=False)
