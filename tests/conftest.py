from __future__ import annotations

from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import pytest

from app import create_app
from services.settings import Settings


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every directory into a per-test temp dir."""
    return Settings(
        upload_dir=str(tmp_path / "uploads"),
        zip_dir=str(tmp_path / "zip"),
        log_dir=str(tmp_path / "log"),
    )


@pytest.fixture
def uploads(settings: Settings) -> Path:
    return Path(settings.upload_dir)


@pytest.fixture
def zip_dir(settings: Settings) -> Path:
    return Path(settings.zip_dir)


@pytest.fixture
def app(settings: Settings):
    flask_app = create_app(settings)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


def redirect_params(response) -> dict[str, str]:
    """Query parameters of a redirect's Location header (blank values kept)."""
    assert response.status_code == 302, response.status_code
    location = response.headers["Location"]
    parts = urlsplit(location)
    assert parts.path == "/"
    return {k: v[0] for k, v in parse_qs(parts.query, keep_blank_values=True).items()}
