from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from db.database import savepoint
from storage.calendar import insert_event, study_session_event
from utils.dates import days_from_now_db, now_db, to_db_datetime, to_utc_naive
from utils.recurrence import expand_occurrences
from utils.serialize import COURSE_COLUMNS, STUDY_GROUP_COLUMNS, USER_PUBLIC_COLUMNS, row_to_dict, select_columns

logger = logging.getLogger(__name__)

SCHEDULE_FALLBACK_DAYS = 7
EDITABLE_COLUMNS = ("name", "description", "course_id")


def list_groups(conn) -> List[Dict[str, Any]]:
    """Active groups with creator, course and member count, newest first."""
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT
            {select_columns('g', STUDY_GROUP_COLUMNS)},
            {select_columns('u', USER_PUBLIC_COLUMNS, 'creator')},
            {select_columns('c', COURSE_COLUMNS, 'course')},
            (SELECT COUNT(*) FROM study_group_members m WHERE m.group_id = g.id) AS member_count
        FROM study_groups g
        JOIN users u ON u.id = g.creator_id
        LEFT JOIN courses c ON c.id = g.course_id
        WHERE g.is_active = 1
        ORDER BY g.created_at DESC, g.id DESC
        """
    )
    return [row_to_dict(row, "creator", "course") for row in cursor.fetchall()]


def list_user_groups(conn, user_id: int) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT
            {select_columns('g', STUDY_GROUP_COLUMNS)},
            {select_columns('c', COURSE_COLUMNS, 'course')},
            (SELECT COUNT(*) FROM study_group_members m2 WHERE m2.group_id = g.id) AS member_count
        FROM study_groups g
        JOIN study_group_members m ON m.group_id = g.id
        LEFT JOIN courses c ON c.id = g.course_id
        WHERE m.user_id = ?
        ORDER BY g.created_at DESC, g.id DESC
        """,
        (user_id,),
    )
    return [row_to_dict(row, "course") for row in cursor.fetchall()]


def get_group(conn, group_id: int) -> Optional[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        f"SELECT {select_columns('g', STUDY_GROUP_COLUMNS)} FROM study_groups g WHERE g.id = ?",
        (group_id,),
    )
    row = cursor.fetchone()
    return row_to_dict(row) if row else None


def list_group_members(conn, group_id: int) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT {select_columns('u', USER_PUBLIC_COLUMNS)}, m.joined_at
        FROM users u
        JOIN study_group_members m ON m.user_id = u.id
        WHERE m.group_id = ?
        ORDER BY m.joined_at, m.id
        """,
        (group_id,),
    )
    return [row_to_dict(row) for row in cursor.fetchall()]


def is_group_member(conn, group_id: int, user_id: int) -> bool:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT 1 FROM study_group_members WHERE group_id = ? AND user_id = ?",
        (group_id, user_id),
    )
    return cursor.fetchone() is not None


def materialize_group_events(
    conn,
    group: Dict[str, Any],
    user_id: int,
    meeting_date: Optional[datetime],
    end_date: Optional[datetime],
) -> int:
    """Write the creator's calendar rows for a new group; returns how many were written.

    With a meeting date: the first session plus the recurring copies. Without one but
    with a free-text schedule: a single placeholder session a week from now.
    """
    if meeting_date is not None:
        start = to_utc_naive(meeting_date)
        end = to_utc_naive(end_date) if end_date else None
        occurrences = expand_occurrences(start, end, group["is_recurring"], group.get("recurring_pattern"))
        for occurrence_start, occurrence_end in occurrences:
            insert_event(
                conn,
                user_id,
                study_session_event(group, to_db_datetime(occurrence_start), to_db_datetime(occurrence_end)),
            )
        return len(occurrences)
    if group.get("schedule"):
        insert_event(conn, user_id, study_session_event(group, days_from_now_db(SCHEDULE_FALLBACK_DAYS)))
        return 1
    return 0


def create_group(conn, creator_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    """Create a group, add the creator as a member and write the creator's sessions.

    Group and membership commit together; calendar rows are best-effort.
    """
    pattern = data.get("recurring_pattern")
    cursor = conn.cursor()
    try:
        cursor.execute(
            """
            INSERT INTO study_groups (
                name, description, course_id, creator_id, max_members, schedule, location,
                meeting_date, end_date, is_recurring, recurring_pattern
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                data["name"],
                data.get("description"),
                data.get("course_id"),
                creator_id,
                data.get("max_members", 6),
                data.get("schedule"),
                data.get("location"),
                to_db_datetime(data.get("meeting_date")),
                to_db_datetime(data.get("end_date")),
                int(bool(data.get("is_recurring"))),
                pattern,
            ),
        )
        group_id = cursor.lastrowid
        cursor.execute(
            "INSERT INTO study_group_members (group_id, user_id) VALUES (?, ?)",
            (group_id, creator_id),
        )
    except Exception:
        conn.rollback()
        raise
    group = get_group(conn, group_id)
    try:
        with savepoint(conn, "group_events"):
            count = materialize_group_events(
                conn, group, creator_id, data.get("meeting_date"), data.get("end_date")
            )
        logger.info("Study group %s created with %s calendar event(s)", group_id, count)
    except Exception:
        logger.exception("Failed to create calendar events for study group %s", group_id)
    conn.commit()
    return group


def copy_future_events(conn, group_id: int, user_id: int) -> int:
    """Give a new member one copy of each upcoming session held by current members, not completed."""
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT title, description, type, start_date, end_date, all_day, location,
               course_id, study_group_id, priority, reminder_minutes
        FROM calendar_events
        WHERE id IN (
            SELECT MIN(id)
            FROM calendar_events
            WHERE study_group_id = ? AND type = 'study_group' AND start_date >= ?
              AND user_id IN (SELECT user_id FROM study_group_members WHERE group_id = ?)
            GROUP BY title, start_date, COALESCE(end_date, ''), COALESCE(location, '')
        )
        ORDER BY start_date
        """,
        (group_id, now_db(), group_id),
    )
    events = [dict(row) for row in cursor.fetchall()]
    for event in events:
        event["is_completed"] = False
        insert_event(conn, user_id, event)
    return len(events)


def join_group(conn, user_id: int, group_id: int) -> int:
    """Add a member and copy the group's upcoming sessions; returns the number copied.

    Raises ValueError when the user is already a member.
    """
    if is_group_member(conn, group_id, user_id):
        raise ValueError("Already a member of this study group")
    conn.execute(
        "INSERT INTO study_group_members (group_id, user_id) VALUES (?, ?)",
        (group_id, user_id),
    )
    copied = 0
    try:
        with savepoint(conn, "member_events"):
            copied = copy_future_events(conn, group_id, user_id)
    except Exception:
        logger.exception("Failed to copy calendar events to user %s for study group %s", user_id, group_id)
    conn.commit()
    return copied


def update_group(conn, group_id: int, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    fields = {key: value for key, value in changes.items() if key in EDITABLE_COLUMNS}
    if fields:
        assignments = ", ".join(f"{key} = ?" for key in fields)
        conn.execute(
            f"UPDATE study_groups SET {assignments} WHERE id = ?",
            (*fields.values(), group_id),
        )
        conn.commit()
    return get_group(conn, group_id)


def leave_group(conn, user_id: int, group_id: int) -> bool:
    """Remove the membership and the user's events for the group; False if not a member."""
    cursor = conn.cursor()
    cursor.execute(
        "DELETE FROM study_group_members WHERE group_id = ? AND user_id = ?",
        (group_id, user_id),
    )
    removed = cursor.rowcount > 0
    cursor.execute(
        "DELETE FROM calendar_events WHERE user_id = ? AND study_group_id = ?",
        (user_id, group_id),
    )
    conn.commit()
    return removed


def schedule_session(conn, group: Dict[str, Any], data: Dict[str, Any]) -> int:
    """Write one event per current member for an ad-hoc session; returns rows written."""
    cursor = conn.cursor()
    cursor.execute("SELECT user_id FROM study_group_members WHERE group_id = ?", (group["id"],))
    member_ids = [row["user_id"] for row in cursor.fetchall()]
    event = study_session_event(
        group,
        to_db_datetime(data["start_date"]),
        to_db_datetime(data.get("end_date")),
        title=data["title"],
        description=data.get("description") or f"Study session for {group['name']}",
        location=data.get("location"),
    )
    try:
        for member_id in member_ids:
            insert_event(conn, member_id, event)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return len(member_ids)
