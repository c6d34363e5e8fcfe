from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Optional

USER_PUBLIC_COLUMNS = (
    "id",
    "email",
    "first_name",
    "last_name",
    "major",
    "year",
    "bio",
    "graduation_year",
    "location",
    "profile_picture",
    "created_at",
    "updated_at",
)

COURSE_COLUMNS = (
    "id",
    "code",
    "name",
    "description",
    "instructor",
    "department",
    "level",
    "semester",
    "created_at",
)

CATEGORY_COLUMNS = ("id", "name", "description", "created_at")

STUDY_GROUP_COLUMNS = (
    "id",
    "name",
    "description",
    "course_id",
    "creator_id",
    "max_members",
    "schedule",
    "location",
    "meeting_date",
    "end_date",
    "is_recurring",
    "recurring_pattern",
    "is_active",
    "created_at",
)

BOOL_COLUMNS = {"is_pinned", "is_recurring", "is_active", "all_day", "is_completed"}
JSON_COLUMNS = {"tags"}
SECRET_COLUMNS = {"password"}


def select_columns(alias: str, columns: Iterable[str], prefix: Optional[str] = None) -> str:
    """Build a projection like "u.id AS author__id, u.email AS author__email"."""
    if prefix is None:
        return ", ".join(f"{alias}.{column}" for column in columns)
    return ", ".join(f"{alias}.{column} AS {prefix}__{column}" for column in columns)


def _convert(key: str, value: Any) -> Any:
    if key in BOOL_COLUMNS and value is not None:
        return bool(value)
    if key in JSON_COLUMNS and isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return []
    return value


def row_to_dict(row, *nested: str) -> Dict[str, Any]:
    """Convert a sqlite3.Row into a dict, folding "<name>__<col>" columns into sub-dicts.

    A nested relation whose id is NULL (LEFT JOIN miss) becomes None.
    """
    data: Dict[str, Any] = {}
    children: Dict[str, Dict[str, Any]] = {name: {} for name in nested}
    for key in row.keys():
        if key in SECRET_COLUMNS:
            continue
        value = row[key]
        name, sep, column = key.partition("__")
        if sep and name in children:
            children[name][column] = _convert(column, value)
        else:
            data[key] = _convert(key, value)
    for name, child in children.items():
        data[name] = child if child.get("id") is not None else None
    return data


def camelize(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_api(value: Any) -> Any:
    """Recursively camelCase dict keys for JSON responses, dropping secret fields."""
    if isinstance(value, dict):
        return {
            camelize(key): to_api(item)
            for key, item in value.items()
            if key not in SECRET_COLUMNS
        }
    if isinstance(value, (list, tuple)):
        return [to_api(item) for item in value]
    return value
