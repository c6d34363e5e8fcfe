from __future__ import annotations

from typing import Any, Dict, List, Optional

from utils.auth import hash_password, verify_password
from utils.dates import now_db
from utils.serialize import USER_PUBLIC_COLUMNS, row_to_dict, select_columns

USER_SEARCH_LIMIT = 20
PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "major",
    "year",
    "bio",
    "graduation_year",
    "location",
    "profile_picture",
)


def get_user(conn, user_id: int) -> Optional[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        f"SELECT {select_columns('u', USER_PUBLIC_COLUMNS)} FROM users u WHERE u.id = ?",
        (user_id,),
    )
    row = cursor.fetchone()
    return row_to_dict(row) if row else None


def email_exists(conn, email: str) -> bool:
    cursor = conn.cursor()
    cursor.execute("SELECT 1 FROM users WHERE email = ?", (email.lower(),))
    return cursor.fetchone() is not None


def create_user(conn, data: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a user with a hashed password; raises sqlite3.IntegrityError on duplicate email."""
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO users (email, password, first_name, last_name, major, year, bio, graduation_year, location)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            data["email"].lower(),
            hash_password(data["password"]),
            data["first_name"],
            data["last_name"],
            data.get("major"),
            data.get("year"),
            data.get("bio"),
            data.get("graduation_year"),
            data.get("location"),
        ),
    )
    user_id = cursor.lastrowid
    conn.commit()
    return get_user(conn, user_id)


def authenticate_user(conn, email: str, password: str) -> Optional[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute("SELECT id, password FROM users WHERE email = ?", (email.lower(),))
    row = cursor.fetchone()
    if not row or not verify_password(password, row["password"]):
        return None
    return get_user(conn, row["id"])


def update_user(conn, user_id: int, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Apply a partial profile update; unknown keys are ignored."""
    fields = {key: value for key, value in changes.items() if key in PROFILE_FIELDS}
    if fields:
        assignments = ", ".join(f"{key} = ?" for key in fields)
        conn.execute(
            f"UPDATE users SET {assignments}, updated_at = ? WHERE id = ?",
            (*fields.values(), now_db(), user_id),
        )
        conn.commit()
    return get_user(conn, user_id)


def _like_pattern(query: str) -> str:
    escaped = query.strip().lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_users(conn, query: str, current_user_id: int) -> List[Dict[str, Any]]:
    """First name, last name or email containing the query, literally; never the caller."""
    term = _like_pattern(query)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT {select_columns('u', USER_PUBLIC_COLUMNS)}
        FROM users u
        WHERE (
            lower(u.first_name) LIKE ? ESCAPE '\\'
            OR lower(u.last_name) LIKE ? ESCAPE '\\'
            OR lower(u.email) LIKE ? ESCAPE '\\'
        )
          AND u.id != ?
        ORDER BY u.first_name, u.last_name
        LIMIT ?
        """,
        (term, term, term, current_user_id, USER_SEARCH_LIMIT),
    )
    return [row_to_dict(row) for row in cursor.fetchall()]
