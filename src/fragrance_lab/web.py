"""
Flask REST API for the Fragrance Lab chat.

Thin HTTP layer over FragranceLabApp; every mutating route needs the CSRF
token issued with the session and goes through the submission guard.
"""
import logging
from typing import Optional

from flask import Flask, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from .app import FragranceLabApp
from .exceptions import (
    EmptyInput,
    FragranceLabError,
    MissingRecipe,
    TurnInProgress,
)
from .models import NOTE_CATEGORIES
from .security import (
    CSRFError,
    CSRFTokenStore,
    DuplicateSubmissionError,
    InputValidator,
    SubmissionGuard,
    ValidationError,
)

logger = logging.getLogger(__name__)

CSRF_HEADER = "X-CSRF-Token"


def create_app(
    lab_app: FragranceLabApp,
    csrf_store: Optional[CSRFTokenStore] = None,
    submission_guard: Optional[SubmissionGuard] = None,
    rate_limits: Optional[list] = None,
) -> Flask:
    """
    Build the Flask application.

    :param lab_app: Initialized FragranceLabApp
    :param csrf_store: CSRF token store (one per process)
    :param submission_guard: Debounce guard (one per process)
    :param rate_limits: Default flask-limiter limits
    :return: Flask app
    """
    config = lab_app.service.config
    csrf_store = csrf_store or CSRFTokenStore(ttl=config.csrf_token_ttl_seconds)
    submission_guard = submission_guard or SubmissionGuard(debounce=config.submission_debounce_seconds)

    app = Flask(__name__)
    limiter = Limiter(
        get_remote_address,
        app=app,
        default_limits=rate_limits if rate_limits is not None else ["200 per hour", "30 per minute"],
        storage_uri="memory://",
    )

    def _session_or_404(session_id):
        state = lab_app.get_state(session_id) if session_id else None
        if state is None:
            return None, (jsonify({"error": "Unknown session"}), 404)
        return state, None

    def _check_csrf(session_id: str) -> None:
        csrf_store.require(session_id, request.headers.get(CSRF_HEADER, ""))

    @app.errorhandler(CSRFError)
    def _csrf_error(e):
        logger.warning(f"CSRF check failed: {e}")
        return jsonify({"error": str(e)}), 403

    @app.errorhandler(DuplicateSubmissionError)
    def _duplicate_error(e):
        return jsonify({"error": str(e)}), 429

    @app.errorhandler(ValidationError)
    def _validation_error(e):
        logger.warning(f"Input validation failed: {e}")
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(EmptyInput)
    def _empty_error(e):
        return jsonify({"error": str(e), "error_kind": "EmptyInput"}), 400

    @app.errorhandler(TurnInProgress)
    @app.errorhandler(MissingRecipe)
    def _conflict_error(e):
        return jsonify({"error": str(e), "error_kind": type(e).__name__}), 409

    @app.errorhandler(FragranceLabError)
    def _lab_error(e):
        logger.error(f"Fragrance lab error: {e}", exc_info=True)
        return jsonify({"error": str(e), "error_kind": type(e).__name__}), 500

    @app.route("/api/oils", methods=["GET"])
    def oils():
        """List catalog oils, optionally for one category."""
        category = request.args.get("category")
        if category and category not in NOTE_CATEGORIES:
            return jsonify({"error": f"category must be one of {list(NOTE_CATEGORIES)}"}), 400
        catalog = lab_app.service.catalog
        selected = catalog.get_oils_by_category(category) if category else catalog.all_oils()
        return jsonify({"oils": [
            {
                "name": oil.name,
                "english_name": oil.english_name,
                "description": oil.description,
                "emotion": oil.emotion,
                "category": oil.category,
            }
            for oil in selected
        ]})

    @app.route("/api/session", methods=["POST"])
    @limiter.limit("10 per minute")
    def start_session():
        """Create a conversation and issue its CSRF token."""
        state = lab_app.start_session()
        token = csrf_store.issue(state.session_id)
        logger.info(f"Session created - Session: {state.session_id}")
        return jsonify({"session_id": state.session_id, "csrf_token": token, "state": state.to_dict()}), 201

    @app.route("/api/session/<session_id>", methods=["GET"])
    def get_session(session_id):
        state, error = _session_or_404(session_id)
        if error:
            return error
        return jsonify(state.to_dict())

    @app.route("/api/session/<session_id>", methods=["DELETE"])
    @limiter.limit("10 per minute")
    def end_session(session_id):
        """Discard a conversation together with its token and guard state."""
        _, error = _session_or_404(session_id)
        if error:
            return error
        _check_csrf(session_id)

        lab_app.end_session(session_id)
        csrf_store.invalidate(session_id)
        submission_guard.reset(f"chat:{session_id}")
        submission_guard.reset(f"regenerate:{session_id}")
        logger.info(f"Session ended - Session: {session_id}")
        return "", 204

    @app.route("/api/csrf-token", methods=["POST"])
    @limiter.limit("10 per minute")
    def refresh_csrf_token():
        """Rotate the CSRF token of an existing session."""
        data = request.get_json(silent=True) or {}
        session_id = data.get("session_id")
        _, error = _session_or_404(session_id)
        if error:
            return error
        _check_csrf(session_id)
        return jsonify({"csrf_token": csrf_store.issue(session_id)})

    @app.route("/api/chat", methods=["POST"])
    @limiter.limit("20 per minute")
    def chat():
        """Process one conversational turn."""
        data = request.get_json(silent=True) or {}
        session_id = data.get("session_id")
        _, error = _session_or_404(session_id)
        if error:
            return error
        _check_csrf(session_id)

        message = InputValidator.sanitize_query(
            data.get("message") or "", max_length=config.max_input_length
        )
        response = submission_guard.guard(
            f"chat:{session_id}", lambda: lab_app.chat(session_id, message)
        )
        logger.info(
            f"Chat turn - Session: {session_id}, Phase: {response.phase}, Latency: {response.latency_ms}ms"
        )
        return jsonify(response.to_dict()), (200 if response.applied else 502)

    @app.route("/api/regenerate-note", methods=["POST"])
    @limiter.limit("10 per minute")
    def regenerate_note():
        """Regenerate one note category of the current recipe."""
        data = request.get_json(silent=True) or {}
        session_id = data.get("session_id")
        category = data.get("category")
        _, error = _session_or_404(session_id)
        if error:
            return error
        _check_csrf(session_id)

        if category not in NOTE_CATEGORIES:
            return jsonify({"error": f"category must be one of {list(NOTE_CATEGORIES)}"}), 400

        instruction = InputValidator.sanitize_query(
            data.get("message") or "", max_length=config.max_input_length
        )
        response = submission_guard.guard(
            f"regenerate:{session_id}",
            lambda: lab_app.regenerate_note(session_id, category, instruction),
        )
        return jsonify(response.to_dict()), (200 if response.applied else 502)

    return app
