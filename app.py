#!/usr/bin/env python3
"""
FlowPro Documents: Application Entry Point
Creates Flask app and registers the documents Blueprint.
"""

import os
import time
import logging
from flask import Flask, request

log = logging.getLogger("flowpro")


def create_app(setup_logs: bool = True):
    """Application factory."""
    if setup_logs:
        from logging_config import setup_logging
        setup_logging()

    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "flowpro-docs")
    app.config["MAX_CONTENT_LENGTH"] = int(
        os.environ.get("FLOWPRO_MAX_REQUEST_BYTES", 32 * 1024 * 1024))

    # ── Paths ─────────────────────────────────────────────────────────────────
    from flowpro.core.paths import ensure_dirs, validate_paths
    ensure_dirs()
    checks = validate_paths()
    for err in checks["errors"]:
        log.error("STARTUP: %s", err)
    for warn in checks["warnings"]:
        log.info("STARTUP: %s", warn)

    from flowpro.api.documents import bp
    app.register_blueprint(bp)

    # ── Request-level structured logging ──────────────────────────────────────
    @app.before_request
    def _log_request_start():
        request._start_time = time.time()

    @app.after_request
    def _log_request_end(response):
        if hasattr(request, "_start_time") and request.path != "/api/health":
            duration_ms = round((time.time() - request._start_time) * 1000, 1)
            log.info("%s %s → %d (%.0fms)",
                     request.method, request.path, response.status_code, duration_ms,
                     extra={"route": request.path, "method": request.method,
                            "status": response.status_code, "duration_ms": duration_ms})
        return response

    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port, debug=False)
