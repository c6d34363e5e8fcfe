from __future__ import annotations

from typing import Any, Dict, List, Optional

from utils.dates import now_db
from utils.serialize import COURSE_COLUMNS, STUDY_GROUP_COLUMNS, row_to_dict, select_columns

EVENT_COLUMNS = (
    "id",
    "title",
    "description",
    "type",
    "start_date",
    "end_date",
    "all_day",
    "location",
    "user_id",
    "course_id",
    "study_group_id",
    "priority",
    "is_completed",
    "reminder_minutes",
    "created_at",
    "updated_at",
)

# Columns a caller may write; id, owner and timestamps are managed here.
EDITABLE_COLUMNS = (
    "title",
    "description",
    "type",
    "start_date",
    "end_date",
    "all_day",
    "location",
    "course_id",
    "study_group_id",
    "priority",
    "is_completed",
    "reminder_minutes",
)

STUDY_SESSION_REMINDER_MINUTES = 30


def list_events(conn, user_id: int, start: Optional[str] = None, end: Optional[str] = None) -> List[Dict[str, Any]]:
    """A user's events with course and study group attached, ordered by start date."""
    filters = ["e.user_id = ?"]
    params: list[object] = [user_id]
    if start:
        filters.append("e.start_date >= ?")
        params.append(start)
    if end:
        filters.append("e.start_date <= ?")
        params.append(end)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT
            {select_columns('e', EVENT_COLUMNS)},
            {select_columns('c', COURSE_COLUMNS, 'course')},
            {select_columns('g', STUDY_GROUP_COLUMNS, 'study_group')}
        FROM calendar_events e
        LEFT JOIN courses c ON c.id = e.course_id
        LEFT JOIN study_groups g ON g.id = e.study_group_id
        WHERE {' AND '.join(filters)}
        ORDER BY e.start_date, e.id
        """,
        params,
    )
    return [row_to_dict(row, "course", "study_group") for row in cursor.fetchall()]


def get_event(conn, event_id: int) -> Optional[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        f"SELECT {select_columns('e', EVENT_COLUMNS)} FROM calendar_events e WHERE e.id = ?",
        (event_id,),
    )
    row = cursor.fetchone()
    return row_to_dict(row) if row else None


def insert_event(conn, user_id: int, data: Dict[str, Any]) -> int:
    """Insert one event row without committing; returns the new id."""
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO calendar_events (
            title, description, type, start_date, end_date, all_day, location,
            user_id, course_id, study_group_id, priority, is_completed, reminder_minutes
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            data["title"],
            data.get("description"),
            data["type"],
            data["start_date"],
            data.get("end_date"),
            int(bool(data.get("all_day", False))),
            data.get("location"),
            user_id,
            data.get("course_id"),
            data.get("study_group_id"),
            data.get("priority") or "medium",
            int(bool(data.get("is_completed", False))),
            data.get("reminder_minutes", 60),
        ),
    )
    return cursor.lastrowid


def create_event(conn, user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    event_id = insert_event(conn, user_id, data)
    conn.commit()
    return get_event(conn, event_id)


def update_event(conn, event_id: int, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    fields = {key: value for key, value in changes.items() if key in EDITABLE_COLUMNS}
    for key in ("all_day", "is_completed"):
        if key in fields and fields[key] is not None:
            fields[key] = int(bool(fields[key]))
    if fields:
        assignments = ", ".join(f"{key} = ?" for key in fields)
        conn.execute(
            f"UPDATE calendar_events SET {assignments}, updated_at = ? WHERE id = ?",
            (*fields.values(), now_db(), event_id),
        )
        conn.commit()
    return get_event(conn, event_id)


def delete_event(conn, event_id: int) -> None:
    conn.execute("DELETE FROM calendar_events WHERE id = ?", (event_id,))
    conn.commit()


def set_event_completed(conn, event_id: int, completed: bool) -> None:
    conn.execute(
        "UPDATE calendar_events SET is_completed = ?, updated_at = ? WHERE id = ?",
        (int(completed), now_db(), event_id),
    )
    conn.commit()


def study_session_event(
    group: Dict[str, Any],
    start_date: str,
    end_date: Optional[str] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
    location: Optional[str] = None,
) -> Dict[str, Any]:
    """Event payload for one study group occurrence."""
    return {
        "title": title or f"{group['name']} - Study Session",
        "description": description or group.get("description") or f"Study group session for {group['name']}",
        "type": "study_group",
        "start_date": start_date,
        "end_date": end_date,
        "all_day": False,
        "location": location or group.get("location"),
        "course_id": group.get("course_id"),
        "study_group_id": group["id"],
        "priority": "medium",
        "is_completed": False,
        "reminder_minutes": STUDY_SESSION_REMINDER_MINUTES,
    }
