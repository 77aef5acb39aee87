"""
Flask entrypoint.

* ``GET /`` – health check.
* ``POST /api/stt`` – multipart upload with an ``audio`` file field and an
  optional ``language`` field (``hi-IN``, ``en-IN``, ...).  Responds with the
  transcript or a categorised error.

Run locally with ``python -m bharat_stt.main``; settings come from the
environment (see :mod:`stt_pipeline.config`).
"""

import json
import logging
from typing import Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from stt_pipeline.config import Settings
from stt_pipeline.errors import ErrorKind, OrchestrationError
from stt_pipeline.orchestrator import TranscriptionOrchestrator, build_orchestrator

SERVICE_NAME = "Bharat STT Backend"


def configure_logging() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")


def error_response(exc: OrchestrationError):
    """Map an orchestration failure to a JSON body and status code."""
    if exc.kind is ErrorKind.VALIDATION:
        return {"ok": False, "error": exc.message}, 400
    if exc.kind is ErrorKind.REMOTE_FAILURE:
        return {"ok": False, "error": "Transcribe failed", "reason": exc.reason}, 500
    if exc.kind is ErrorKind.TIMEOUT:
        return {"ok": False, "error": "Timeout waiting for transcription"}, 504
    return {"ok": False, "error": "Server error", "message": exc.message or "unknown"}, 500


def create_app(
    orchestrator: Optional[TranscriptionOrchestrator] = None,
    settings: Optional[Settings] = None,
) -> Flask:
    settings = settings or Settings.from_env()
    if orchestrator is None:
        orchestrator = build_orchestrator(settings)

    app = Flask(__name__)
    CORS(app)
    app.config["STT_SETTINGS"] = settings
    app.extensions["stt_orchestrator"] = orchestrator

    @app.route("/", methods=["GET"])
    def health():
        return jsonify({"ok": True, "service": SERVICE_NAME, "region": settings.location})

    @app.route("/api/stt", methods=["POST"])
    def stt():
        upload = request.files.get("audio")
        language = request.form.get("language") or settings.default_language
        audio = upload.read() if upload else None
        try:
            result = orchestrator.submit(
                audio,
                content_type=upload.mimetype if upload else None,
                filename=upload.filename if upload else None,
                language_code=language,
            )
        except OrchestrationError as exc:
            logging.warning(
                json.dumps(
                    {
                        "event": "stt_error",
                        "kind": exc.kind.value,
                        "message": exc.message,
                        "reason": exc.reason,
                    }
                )
            )
            body, status = error_response(exc)
            return jsonify(body), status
        return jsonify(result.to_dict()), 200

    return app


if __name__ == "__main__":
    configure_logging()
    settings = Settings.from_env()
    app = create_app(settings=settings)
    logging.info(json.dumps({"event": "startup", "service": SERVICE_NAME, "port": settings.port}))
    app.run(host="0.0.0.0", port=settings.port)
