import tomllib
import shutil
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".campuscove"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"

DEFAULT_MAX_UPLOAD_MB = 10
DEFAULT_SESSION_MINUTES = 24 * 60


def _as_bool(value: Any) -> bool:
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def load_config() -> Dict[str, Any]:
    """Load config from ~/.campuscove/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    server_cfg = config.get("server", {})
    config["server"] = {
        "host": os.getenv("CAMPUSCOVE_HOST", server_cfg.get("host", "127.0.0.1")),
        "port": int(os.getenv("PORT", server_cfg.get("port", 5000))),
    }
    uploads_cfg = config.get("uploads", {})
    upload_dir = os.getenv("UPLOAD_DIR", uploads_cfg.get("dir") or "")
    config["uploads"] = {
        "dir": Path(upload_dir).expanduser() if upload_dir else CONFIG_DIR / "uploads",
        "max_mb": int(os.getenv("MAX_UPLOAD_MB", uploads_cfg.get("max_mb", DEFAULT_MAX_UPLOAD_MB))),
    }
    session_cfg = config.get("session", {})
    config["session"] = {
        "cookie_name": session_cfg.get("cookie_name", "campuscove_session"),
        "max_age_minutes": int(os.getenv(
            "SESSION_MAX_AGE_MINUTES",
            session_cfg.get("max_age_minutes", DEFAULT_SESSION_MINUTES),
        )),
        "secure_cookie": _as_bool(os.getenv(
            "SESSION_SECURE_COOKIE",
            session_cfg.get("secure_cookie", False),
        )),
    }
    logging_cfg = config.get("logging", {})
    config["logging"] = {
        "level": os.getenv("LOG_LEVEL", logging_cfg.get("level", "INFO")).upper(),
    }
    return config


def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('uploads', 'max_mb')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return value


def get_upload_dir() -> Path:
    """Resolve the uploads directory and make sure it exists."""
    upload_dir = Path(get_config_value("uploads", "dir"))
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def get_max_upload_bytes() -> int:
    return int(get_config_value("uploads", "max_mb", DEFAULT_MAX_UPLOAD_MB)) * 1024 * 1024
