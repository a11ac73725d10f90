#!/usr/bin/env python3
"""Serve filedock-ui with gevent's WSGI server.

Listen address comes from FILEDOCK_HOST / FILEDOCK_PORT (see services/settings.py).
"""

from gevent import pywsgi

from app import create_app
from services.logging_setup import core_log
from services.settings import load_settings


def main() -> None:
    settings = load_settings()
    app = create_app(settings)
    server = pywsgi.WSGIServer((settings.host, settings.port), app)
    core_log("info", "filedock-ui listening", url=f"http://{settings.host}:{settings.port}")
    print(f"Server running at http://localhost:{settings.port}")
    server.serve_forever()


if __name__ == "__main__":
    main()
