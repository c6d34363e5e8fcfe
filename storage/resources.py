from __future__ import annotations

from typing import Any, Dict, List, Optional

from utils.serialize import COURSE_COLUMNS, USER_PUBLIC_COLUMNS, row_to_dict, select_columns

RESOURCE_COLUMNS = (
    "id",
    "title",
    "description",
    "type",
    "filename",
    "original_name",
    "file_size",
    "mime_type",
    "course_id",
    "uploader_id",
    "downloads",
    "rating",
    "created_at",
)


def list_resources(conn, course_id: Optional[int] = None, resource_type: Optional[str] = None) -> List[Dict[str, Any]]:
    """Resources joined with uploader and course; both filters optional and AND-combined."""
    filters = []
    params: list[object] = []
    if course_id is not None:
        filters.append("r.course_id = ?")
        params.append(course_id)
    if resource_type:
        filters.append("r.type = ?")
        params.append(resource_type)
    where_clause = f"WHERE {' AND '.join(filters)}" if filters else ""
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT
            {select_columns('r', RESOURCE_COLUMNS)},
            {select_columns('u', USER_PUBLIC_COLUMNS, 'uploader')},
            {select_columns('c', COURSE_COLUMNS, 'course')}
        FROM resources r
        JOIN users u ON u.id = r.uploader_id
        JOIN courses c ON c.id = r.course_id
        {where_clause}
        ORDER BY r.created_at DESC, r.id DESC
        """,
        params,
    )
    return [row_to_dict(row, "uploader", "course") for row in cursor.fetchall()]


def get_resource(conn, resource_id: int) -> Optional[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        f"SELECT {select_columns('r', RESOURCE_COLUMNS)} FROM resources r WHERE r.id = ?",
        (resource_id,),
    )
    row = cursor.fetchone()
    return row_to_dict(row) if row else None


def create_resource(conn, data: Dict[str, Any]) -> Dict[str, Any]:
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO resources (title, description, type, filename, original_name, file_size, mime_type, course_id, uploader_id)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            data["title"],
            data.get("description"),
            data["type"],
            data["filename"],
            data.get("original_name"),
            data["file_size"],
            data.get("mime_type"),
            data["course_id"],
            data["uploader_id"],
        ),
    )
    resource_id = cursor.lastrowid
    conn.commit()
    return get_resource(conn, resource_id)


def record_download(conn, resource_id: int) -> None:
    conn.execute(
        "UPDATE resources SET downloads = downloads + 1 WHERE id = ?",
        (resource_id,),
    )
    conn.commit()
