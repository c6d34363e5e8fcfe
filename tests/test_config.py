from pathlib import Path

import config


def _point_config_at(tmp_path: Path, monkeypatch) -> Path:
    config_dir = tmp_path / ".campuscove"
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_dir / "config.toml")
    for name in ("UPLOAD_DIR", "MAX_UPLOAD_MB", "PORT", "CAMPUSCOVE_HOST", "LOG_LEVEL", "SESSION_SECURE_COOKIE"):
        monkeypatch.delenv(name, raising=False)
    return config_dir


def test_load_config_copies_example_on_first_run(tmp_path, monkeypatch):
    config_dir = _point_config_at(tmp_path, monkeypatch)

    cfg = config.load_config()

    assert (config_dir / "config.toml").exists()
    assert cfg["server"] == {"host": "127.0.0.1", "port": 5000}
    assert cfg["uploads"]["dir"] == config_dir / "uploads"
    assert cfg["uploads"]["max_mb"] == 10
    assert cfg["session"]["cookie_name"] == "campuscove_session"
    assert cfg["session"]["secure_cookie"] is False
    assert cfg["logging"]["level"] == "INFO"


def test_environment_overrides_file_values(tmp_path, monkeypatch):
    _point_config_at(tmp_path, monkeypatch)
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("MAX_UPLOAD_MB", "2")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "files"))
    monkeypatch.setenv("SESSION_SECURE_COOKIE", "true")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    cfg = config.load_config()

    assert cfg["server"]["port"] == 8080
    assert cfg["uploads"]["dir"] == tmp_path / "files"
    assert cfg["session"]["secure_cookie"] is True
    assert cfg["logging"]["level"] == "DEBUG"
    assert config.get_max_upload_bytes() == 2 * 1024 * 1024


def test_get_upload_dir_creates_directory(tmp_path, monkeypatch):
    _point_config_at(tmp_path, monkeypatch)
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "nested" / "uploads"))

    upload_dir = config.get_upload_dir()

    assert upload_dir.is_dir()
    assert upload_dir == tmp_path / "nested" / "uploads"
