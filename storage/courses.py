from __future__ import annotations

from typing import Any, Dict, List, Optional

from utils.serialize import COURSE_COLUMNS, USER_PUBLIC_COLUMNS, row_to_dict, select_columns


def list_courses(conn) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        f"SELECT {select_columns('c', COURSE_COLUMNS)} FROM courses c ORDER BY c.created_at DESC, c.id DESC"
    )
    return [row_to_dict(row) for row in cursor.fetchall()]


def get_course(conn, course_id: int) -> Optional[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        f"SELECT {select_columns('c', COURSE_COLUMNS)} FROM courses c WHERE c.id = ?",
        (course_id,),
    )
    row = cursor.fetchone()
    return row_to_dict(row) if row else None


def create_course(conn, data: Dict[str, Any]) -> Dict[str, Any]:
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO courses (code, name, description, instructor, department, level, semester)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (
            data["code"],
            data["name"],
            data.get("description"),
            data.get("instructor"),
            data.get("department"),
            data.get("level"),
            data.get("semester"),
        ),
    )
    course_id = cursor.lastrowid
    conn.commit()
    return get_course(conn, course_id)


def is_course_member(conn, course_id: int, user_id: int) -> bool:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT 1 FROM course_members WHERE course_id = ? AND user_id = ?",
        (course_id, user_id),
    )
    return cursor.fetchone() is not None


def join_course(conn, user_id: int, course_id: int, role: str = "member") -> None:
    """Add a membership row; raises ValueError when the user already belongs to the course."""
    if is_course_member(conn, course_id, user_id):
        raise ValueError("Already a member of this course")
    conn.execute(
        "INSERT INTO course_members (course_id, user_id, role) VALUES (?, ?, ?)",
        (course_id, user_id, role),
    )
    conn.commit()


def list_user_courses(conn, user_id: int) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT {select_columns('c', COURSE_COLUMNS)}
        FROM courses c
        JOIN course_members cm ON cm.course_id = c.id
        WHERE cm.user_id = ?
        ORDER BY c.code
        """,
        (user_id,),
    )
    return [row_to_dict(row) for row in cursor.fetchall()]


def list_course_members(conn, course_id: int) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT {select_columns('u', USER_PUBLIC_COLUMNS)}, cm.role, cm.joined_at
        FROM users u
        JOIN course_members cm ON cm.user_id = u.id
        WHERE cm.course_id = ?
        ORDER BY cm.joined_at, u.id
        """,
        (course_id,),
    )
    return [row_to_dict(row) for row in cursor.fetchall()]
