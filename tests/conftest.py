from pathlib import Path

import pytest
from fastapi.testclient import TestClient

import config
from db import database
from main import app


def _write_test_config(config_path: Path, upload_dir: Path, max_mb: int = 10) -> None:
    config_path.write_text(
        "\n".join(
            [
                "[uploads]",
                f"dir = \"{upload_dir.as_posix()}\"",
                f"max_mb = {max_mb}",
                "",
                "[session]",
                "cookie_name = \"campuscove_session\"",
                "max_age_minutes = 60",
                "secure_cookie = false",
            ]
        ),
        encoding="utf-8",
    )


@pytest.fixture
def app_env(tmp_path, monkeypatch):
    """Point config, database and uploads at a fresh temp directory."""
    for name in ("UPLOAD_DIR", "MAX_UPLOAD_MB", "SESSION_MAX_AGE_MINUTES", "SESSION_SECURE_COOKIE", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    config_dir = tmp_path / ".campuscove"
    config_dir.mkdir()
    config_path = config_dir / "config.toml"
    upload_dir = tmp_path / "uploads"
    _write_test_config(config_path, upload_dir)

    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    monkeypatch.setattr(database, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(database, "DB_PATH", config_dir / "campuscove.db")

    database.init_db()
    return {"config_dir": config_dir, "config_path": config_path, "upload_dir": upload_dir}


@pytest.fixture
def make_client(app_env):
    """Factory for clients with their own cookie jar, optionally signed up as a new user."""
    counter = {"n": 0}

    def _make(first_name: str = None, **profile) -> TestClient:
        client = TestClient(app)
        if first_name is None:
            return client
        counter["n"] += 1
        payload = {
            "email": f"{first_name.lower()}{counter['n']}@campus.edu",
            "password": "secret123",
            "firstName": first_name,
            "lastName": "Student",
            **profile,
        }
        response = client.post("/api/auth/register", json=payload)
        assert response.status_code == 200, response.text
        client.user = response.json()["user"]
        return client

    return _make


@pytest.fixture
def course_id(app_env):
    with database.get_conn() as conn:
        cursor = conn.cursor()
        cursor.execute(
            "INSERT INTO courses (code, name, department) VALUES (?, ?, ?)",
            ("CS101", "Intro to Computing", "Computer Science"),
        )
        conn.commit()
        return cursor.lastrowid
