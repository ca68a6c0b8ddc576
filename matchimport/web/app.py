from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import RequestEntityTooLarge

from matchimport.db.database import get_default_database_path
from matchimport.settings import configure_logging, get_max_upload_bytes
from matchimport.web.routes import bp

logger = logging.getLogger(__name__)


def create_app(test_config=None):
    configure_logging()
    app = Flask(__name__)
    app.config.from_mapping(
        DB_PATH=str(get_default_database_path()),
        MAX_CONTENT_LENGTH=get_max_upload_bytes(),
    )

    if test_config:
        app.config.update(test_config)

    app.register_blueprint(bp)

    @app.errorhandler(RequestEntityTooLarge)
    def upload_too_large(exc):
        limit_mb = app.config["MAX_CONTENT_LENGTH"] // (1024 * 1024)
        logger.warning("Rejected upload over %d MB", limit_mb)
        return jsonify(
            {
                "success": False,
                "error": "File too large",
                "message": f"Uploads are limited to {limit_mb} MB",
            }
        ), 413

    logger.info("Match import service ready (database %s)", app.config["DB_PATH"])
    return app
