"""Flask JSON API over the hand store and the response pipeline."""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify, request

from response.config import RuntimeConfig, load_runtime_config
from response.orchestrator import ComputeError
from response.service import HandNotFound, ResponseService
from response.storage import PersistenceError

logger = logging.getLogger(__name__)


def _api_error(message: str, status: int = 400):
    return jsonify({"error": str(message)}), int(status)


def _truthy(value, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in {"0", "false", "no", "off"}


def create_app(runtime: Optional[RuntimeConfig] = None) -> Flask:
    runtime = runtime or load_runtime_config()
    service = ResponseService(db_path=runtime.store_path)

    app = Flask(__name__)
    app.config["JSON_SORT_KEYS"] = False
    app.config["RESPONSE_SERVICE"] = service

    @app.get("/api/health")
    @app.get("/healthz")
    def health():
        return jsonify({"ok": True, "env": runtime.env})

    @app.get("/api/hands")
    def api_list_hands():
        username = str(request.args.get("username", "")).strip() or None
        try:
            limit = int(request.args.get("limit", 50))
        except ValueError:
            return _api_error("limit must be an integer", status=400)
        return jsonify(service.list_hands(username=username, limit=limit))

    @app.post("/api/hands")
    def api_import_hands():
        payload = request.get_json(silent=True)
        if payload is None:
            return _api_error("JSON body is required", status=400)
        result = service.import_documents(payload)
        if not result["imported"]:
            return _api_error("; ".join(result["rejected"]) or "no hands imported", status=400)
        return jsonify(result)

    @app.get("/api/hands/usernames")
    def api_usernames():
        return jsonify(service.usernames())

    @app.get("/api/hands/<hand_id>")
    def api_get_hand(hand_id: str):
        try:
            return jsonify(service.get_hand(hand_id))
        except HandNotFound as exc:
            return _api_error(exc.args[0], status=404)

    @app.delete("/api/hands/<hand_id>")
    def api_delete_hand(hand_id: str):
        if not service.delete_hand(hand_id):
            return _api_error(f"hand {hand_id} not found", status=404)
        return jsonify({"deleted": hand_id})

    @app.get("/api/hands/<hand_id>/hero-actions/<int:hero_index>/response-model")
    def api_get_model(hand_id: str, hero_index: int):
        try:
            model = service.stored_model(hand_id, hero_index)
        except HandNotFound as exc:
            return _api_error(exc.args[0], status=404)
        if model is None:
            return _api_error("no response model stored", status=404)
        return jsonify(model)

    @app.post("/api/hands/<hand_id>/hero-actions/<int:hero_index>/response-model")
    def api_compute_model(hand_id: str, hero_index: int):
        payload = request.get_json(silent=True) or {}
        villain = str(payload.get("villainId") or "").strip() or None
        try:
            result = service.compute_model(
                hand_id,
                hero_index,
                villain_id=villain,
                persist=_truthy(payload.get("persist"), default=True),
            )
        except HandNotFound as exc:
            return _api_error(exc.args[0], status=404)
        except (ComputeError, PersistenceError) as exc:
            return _api_error(str(exc), status=400)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Hand %s hero action %d: bad hand data: %r", hand_id, hero_index, exc)
            return _api_error(f"invalid hand data: {exc!r}", status=400)
        return jsonify(result)

    return app
