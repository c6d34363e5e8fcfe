from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status

from config import load_config
from db.database import get_db
from utils.dates import DB_DATETIME_FORMAT, now_db, utc_now

PASSWORD_HASH_ALGO = "pbkdf2_sha256"
PASSWORD_HASH_ITERATIONS = 200_000
SESSION_TOKEN_BYTES = 32


def _get_session_config() -> dict:
    config = load_config()
    return config.get("session", {})


def get_session_cookie_name() -> str:
    return _get_session_config().get("cookie_name", "campuscove_session")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password cannot be empty")
    salt = secrets.token_hex(16)
    dk = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        PASSWORD_HASH_ITERATIONS,
    )
    digest = base64.urlsafe_b64encode(dk).decode("utf-8")
    return f"{PASSWORD_HASH_ALGO}${PASSWORD_HASH_ITERATIONS}${salt}${digest}"


def verify_password(password: str, stored_hash: str) -> bool:
    if not stored_hash:
        return False
    try:
        algo, iterations_str, salt, digest = stored_hash.split("$", 3)
    except ValueError:
        return False
    if algo != PASSWORD_HASH_ALGO:
        return False
    try:
        iterations = int(iterations_str)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        iterations,
    )
    computed = base64.urlsafe_b64encode(dk).decode("utf-8")
    return hmac.compare_digest(computed, digest)


def create_session(conn, user_id: int) -> str:
    """Store a new server-side session for the user and return its token."""
    minutes = int(_get_session_config().get("max_age_minutes", 24 * 60))
    token = secrets.token_urlsafe(SESSION_TOKEN_BYTES)
    expires_at = (utc_now() + timedelta(minutes=minutes)).strftime(DB_DATETIME_FORMAT)
    conn.execute(
        "INSERT INTO sessions (token, user_id, expires_at) VALUES (?, ?, ?)",
        (token, user_id, expires_at),
    )
    conn.commit()
    return token


def destroy_session(conn, token: Optional[str]) -> None:
    if not token:
        return
    conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
    conn.commit()


def get_session_user_id(conn, token: Optional[str]) -> Optional[int]:
    if not token:
        return None
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT s.user_id
        FROM sessions s
        JOIN users u ON u.id = s.user_id
        WHERE s.token = ? AND s.expires_at >= ?
        """,
        (token, now_db()),
    )
    row = cursor.fetchone()
    return int(row["user_id"]) if row else None


def set_session_cookie(response: Response, token: str) -> None:
    session_cfg = _get_session_config()
    minutes = int(session_cfg.get("max_age_minutes", 24 * 60))
    response.set_cookie(
        get_session_cookie_name(),
        token,
        max_age=minutes * 60,
        httponly=True,
        samesite="lax",
        secure=bool(session_cfg.get("secure_cookie", False)),
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(get_session_cookie_name())


def current_user_id(request: Request, conn=Depends(get_db)) -> Optional[int]:
    """Resolve the session cookie to a user id, or None for anonymous callers."""
    token = request.cookies.get(get_session_cookie_name())
    return get_session_user_id(conn, token)


def require_user(user_id: Optional[int] = Depends(current_user_id)) -> int:
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user_id
