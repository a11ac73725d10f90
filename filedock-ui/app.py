"""Flask application factory for filedock-ui.

The upload root and the zip scratch directory come from ``Settings`` and are
handed to the blueprint factory explicitly; nothing here is a module-level
global, so tests can build as many apps as they like.
"""

from __future__ import annotations

import os
import time
from typing import Optional

from flask import Flask, g, request

from routes_files import create_files_blueprint
from services.logging_setup import access_logger, configure_logging, core_log, log_paths
from services.settings import Settings, load_settings


def _ensure_dirs(settings: Settings) -> None:
    for d in (settings.upload_dir, settings.zip_dir):
        if not os.path.isdir(d):
            os.makedirs(d, exist_ok=True)


def _install_access_log(app: Flask, settings: Settings) -> None:
    if not settings.log_access_enabled:
        return

    @app.before_request
    def _access_log_before_request():
        g._filedock_t0 = time.time()
        return None

    @app.after_request
    def _access_log_after_request(response):
        try:
            path = request.path or ""
            if path.startswith("/static/"):
                return response

            method = request.method or ""
            status = getattr(response, "status_code", 0) or 0
            client = request.headers.get("X-Forwarded-For") or request.remote_addr or ""
            t0 = getattr(g, "_filedock_t0", None)
            if t0:
                dt_ms = int((time.time() - float(t0)) * 1000.0)
                line = f"{client} {method} {path} -> {status} ({dt_ms}ms)"
            else:
                line = f"{client} {method} {path} -> {status}"
            access_logger().info(line)
        except Exception:
            # Logging must never affect response
            pass
        return response


def create_app(settings: Optional[Settings] = None) -> Flask:
    """Build the Flask app; settings default to the environment."""
    settings = settings or load_settings()

    _ensure_dirs(settings)
    configure_logging(settings)

    app = Flask(__name__, static_folder="static", template_folder="templates")
    app.config["FILEDOCK_SETTINGS"] = settings
    if settings.max_content_length is not None:
        app.config["MAX_CONTENT_LENGTH"] = settings.max_content_length

    app.register_blueprint(create_files_blueprint(upload_dir=settings.upload_dir, zip_dir=settings.zip_dir))
    _install_access_log(app, settings)

    core_log_path, access_log_path = log_paths(settings.log_dir)
    core_log(
        "info",
        "filedock-ui init",
        pid=os.getpid(),
        upload_dir=settings.upload_dir,
        zip_dir=settings.zip_dir,
        core_log=core_log_path,
        access_log=access_log_path,
    )
    return app
