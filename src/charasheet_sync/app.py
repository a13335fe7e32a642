"""Flask application exposing the character sync endpoint and form."""
from __future__ import annotations

from typing import Optional, Tuple

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .config import SyncSettings
from .errors import CharacterSyncError
from .pipeline import sync_character
from .utils import configure_logger

GENERIC_ERROR_MESSAGE = "An unexpected error occurred while synchronising the character"


def _character_id_from_request() -> Optional[object]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = request.form
    for key in ("characterId", "character_id"):
        value = body.get(key)
        if value is not None:
            return value
    return None


def create_app(settings: Optional[SyncSettings] = None) -> Flask:
    """Application factory.

    ``settings`` is read from the environment when not supplied; it is the only
    source of Notion credentials.
    """

    logger = configure_logger()
    app = Flask(__name__, static_folder="static", static_url_path="/static")
    app.config["SYNC_SETTINGS"] = settings or SyncSettings.from_env()
    app.json.ensure_ascii = False

    @app.get("/")
    def index():
        return app.send_static_file("index.html")

    @app.post("/api/sync")
    @app.post("/api/sync-character")
    def sync():
        character_id = _character_id_from_request()
        outcome = sync_character(character_id, app.config["SYNC_SETTINGS"], logger=logger)
        return jsonify(outcome.to_dict()), 200

    @app.errorhandler(CharacterSyncError)
    def handle_sync_error(exc: CharacterSyncError) -> Tuple[object, int]:
        logger.warning(
            "sync_failed",
            error=exc.kind,
            status=exc.status_code,
            message=str(exc),
            snippet=getattr(exc, "snippet", None),
        )
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        logger.exception("sync_crashed", error=str(exc))
        return jsonify({"message": GENERIC_ERROR_MESSAGE, "error": "InternalError"}), 500

    return app
