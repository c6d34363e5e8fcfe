from typing import Any, Dict

from storage.calendar import list_events
from utils.dates import days_from_now_db, now_db

UPCOMING_WINDOW_DAYS = 7

def get_dashboard(conn, user_id: int) -> Dict[str, Any]:
    """Membership and upload counts plus open events in the coming week."""
    cursor = conn.cursor()
    cursor.execute("SELECT COUNT(*) FROM course_members WHERE user_id = ?", (user_id,))
    course_count = cursor.fetchone()[0] or 0
    cursor.execute("SELECT COUNT(*) FROM study_group_members WHERE user_id = ?", (user_id,))
    group_count = cursor.fetchone()[0] or 0
    cursor.execute("SELECT COUNT(*) FROM resources WHERE uploader_id = ?", (user_id,))
    resource_count = cursor.fetchone()[0] or 0
    events = list_events(conn, user_id, now_db(), days_from_now_db(UPCOMING_WINDOW_DAYS))
    return {
        "course_count": course_count,
        "group_count": group_count,
        "resource_count": resource_count,
        "upcoming_events": [event for event in events if not event["is_completed"]],
    }
