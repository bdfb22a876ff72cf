#!/usr/bin/env python3
"""
AssignAI - AI-Mediated Assignments
==================================
Run: python3 -m assignai.app
Then point the UI at: http://localhost:9000
"""
import os
import logging

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

from assignai.config import Config, config, HOST, PORT, DEBUG, LOG_LEVEL, PARSE_CACHE_TTL
from assignai.errors import NotFoundError, ValidationError
from assignai.routes import register_routes
from assignai.routes.assignment_routes import too_large_message
from assignai.services.assignment_parser import AssignmentParser
from assignai.services.assignment_store import AssignmentStore
from assignai.services.cache import ResponseCache
from assignai.services.llm_client import LLMClient
from assignai.services.mediation_service import MediationService

logger = logging.getLogger(__name__)

# Room for multipart framing around a maximum-size PDF
MULTIPART_OVERHEAD = 1024 * 1024


def create_app(store=None, parser=None, mediation=None, upload_folder=None, settings=None):
    """Build the Flask app. Services not passed in are created from config.

    settings overrides Config attributes by name for this app only; the
    result lands in app.config under upper-case keys.
    """
    app = Flask(__name__)
    CORS(app)

    app_config = Config()
    app_config.update(settings or {})
    if upload_folder:
        app_config.upload_folder = upload_folder
    app.config.update({key.upper(): value for key, value in app_config.to_dict().items()})
    app.config['MAX_CONTENT_LENGTH'] = app_config.max_upload_bytes + MULTIPART_OVERHEAD
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

    if parser is None or mediation is None:
        llm = LLMClient(api_key=app_config.openai_api_key, model=app_config.openai_model)
        if parser is None:
            parser = AssignmentParser(
                llm=LLMClient(api_key=app_config.openai_api_key, model=app_config.parser_model),
                cache=ResponseCache(ttl=PARSE_CACHE_TTL),
            )
        if mediation is None:
            mediation = MediationService(llm=llm)

    register_routes(app, store or AssignmentStore(), parser, mediation)

    # ══════════════════════════════════════════════════════════════
    # ERROR HANDLERS
    # ══════════════════════════════════════════════════════════════

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        return jsonify({"error": too_large_message(app.config['MAX_UPLOAD_BYTES'])}), 400

    @app.route('/api/test')
    def test_route():
        """Liveness probe."""
        return jsonify({"status": "ok", "message": "Server is running properly"})

    return app


def main():
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    if not config.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; uploads will use the fallback assignment "
                       "and AI requests will return fallback messages")

    app = create_app()
    logger.info("AssignAI listening on http://%s:%d", HOST, PORT)
    app.run(host=HOST, port=PORT, debug=DEBUG)


if __name__ == '__main__':
    main()
