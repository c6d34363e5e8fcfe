from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from utils.serialize import CATEGORY_COLUMNS, USER_PUBLIC_COLUMNS, row_to_dict, select_columns

DEFAULT_POST_LIMIT = 50

POST_COLUMNS = (
    "id",
    "title",
    "content",
    "author_id",
    "category_id",
    "upvotes",
    "downvotes",
    "views",
    "is_pinned",
    "tags",
    "created_at",
    "updated_at",
)

REPLY_COLUMNS = (
    "id",
    "content",
    "author_id",
    "post_id",
    "upvotes",
    "downvotes",
    "created_at",
    "updated_at",
)

# vote table, target column, parent table holding the cached counters
VOTE_TARGETS = {
    "post": ("post_votes", "post_id", "forum_posts"),
    "reply": ("reply_votes", "reply_id", "forum_replies"),
}


def list_categories(conn) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(f"SELECT {select_columns('fc', CATEGORY_COLUMNS)} FROM forum_categories fc ORDER BY fc.name")
    return [row_to_dict(row) for row in cursor.fetchall()]


def category_exists(conn, category_id: int) -> bool:
    cursor = conn.cursor()
    cursor.execute("SELECT 1 FROM forum_categories WHERE id = ?", (category_id,))
    return cursor.fetchone() is not None


def list_posts(conn, category_id: Optional[int] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Posts with author, category and reply count; pinned first, newest first."""
    filters = []
    params: list[object] = []
    if category_id is not None:
        filters.append("p.category_id = ?")
        params.append(category_id)
    where_clause = f"WHERE {' AND '.join(filters)}" if filters else ""
    params.append(limit or DEFAULT_POST_LIMIT)
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT
            {select_columns('p', POST_COLUMNS)},
            {select_columns('u', USER_PUBLIC_COLUMNS, 'author')},
            {select_columns('fc', CATEGORY_COLUMNS, 'category')},
            (SELECT COUNT(*) FROM forum_replies fr WHERE fr.post_id = p.id) AS reply_count
        FROM forum_posts p
        JOIN users u ON u.id = p.author_id
        LEFT JOIN forum_categories fc ON fc.id = p.category_id
        {where_clause}
        ORDER BY p.is_pinned DESC, p.created_at DESC, p.id DESC
        LIMIT ?
        """,
        params,
    )
    return [row_to_dict(row, "author", "category") for row in cursor.fetchall()]


def get_post(conn, post_id: int) -> Optional[Dict[str, Any]]:
    """A post with author, category and its replies (each with author), oldest reply first."""
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT
            {select_columns('p', POST_COLUMNS)},
            {select_columns('u', USER_PUBLIC_COLUMNS, 'author')},
            {select_columns('fc', CATEGORY_COLUMNS, 'category')}
        FROM forum_posts p
        JOIN users u ON u.id = p.author_id
        LEFT JOIN forum_categories fc ON fc.id = p.category_id
        WHERE p.id = ?
        """,
        (post_id,),
    )
    row = cursor.fetchone()
    if not row:
        return None
    post = row_to_dict(row, "author", "category")
    cursor.execute(
        f"""
        SELECT
            {select_columns('r', REPLY_COLUMNS)},
            {select_columns('u', USER_PUBLIC_COLUMNS, 'author')}
        FROM forum_replies r
        JOIN users u ON u.id = r.author_id
        WHERE r.post_id = ?
        ORDER BY r.created_at, r.id
        """,
        (post_id,),
    )
    post["replies"] = [row_to_dict(reply, "author") for reply in cursor.fetchall()]
    return post


def post_exists(conn, post_id: int) -> bool:
    cursor = conn.cursor()
    cursor.execute("SELECT 1 FROM forum_posts WHERE id = ?", (post_id,))
    return cursor.fetchone() is not None


def reply_exists(conn, reply_id: int) -> bool:
    cursor = conn.cursor()
    cursor.execute("SELECT 1 FROM forum_replies WHERE id = ?", (reply_id,))
    return cursor.fetchone() is not None


def create_post(conn, author_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO forum_posts (title, content, author_id, category_id, tags)
        VALUES (?, ?, ?, ?, ?)
        """,
        (
            data["title"],
            data["content"],
            author_id,
            data.get("category_id"),
            json.dumps(data.get("tags") or []),
        ),
    )
    post_id = cursor.lastrowid
    conn.commit()
    cursor.execute(f"SELECT {select_columns('p', POST_COLUMNS)} FROM forum_posts p WHERE p.id = ?", (post_id,))
    return row_to_dict(cursor.fetchone())


def create_reply(conn, author_id: int, post_id: int, content: str) -> Dict[str, Any]:
    cursor = conn.cursor()
    cursor.execute(
        "INSERT INTO forum_replies (content, author_id, post_id) VALUES (?, ?, ?)",
        (content, author_id, post_id),
    )
    reply_id = cursor.lastrowid
    conn.commit()
    cursor.execute(f"SELECT {select_columns('r', REPLY_COLUMNS)} FROM forum_replies r WHERE r.id = ?", (reply_id,))
    return row_to_dict(cursor.fetchone())


def apply_vote(conn, target: str, user_id: int, target_id: int, vote_type: str) -> Dict[str, Any]:
    """Record, switch or toggle off a vote, then recount the cached counters from the vote rows.

    Voting the same type twice removes the vote; voting the opposite type replaces it.
    """
    vote_table, target_column, parent_table = VOTE_TARGETS[target]
    if not conn.in_transaction:
        conn.execute("BEGIN IMMEDIATE")
    try:
        cursor = conn.cursor()
        cursor.execute(
            f"SELECT vote_type FROM {vote_table} WHERE user_id = ? AND {target_column} = ?",
            (user_id, target_id),
        )
        existing = cursor.fetchone()
        if existing is None:
            cursor.execute(
                f"INSERT INTO {vote_table} (user_id, {target_column}, vote_type) VALUES (?, ?, ?)",
                (user_id, target_id, vote_type),
            )
            current_vote: Optional[str] = vote_type
        elif existing["vote_type"] == vote_type:
            cursor.execute(
                f"DELETE FROM {vote_table} WHERE user_id = ? AND {target_column} = ?",
                (user_id, target_id),
            )
            current_vote = None
        else:
            cursor.execute(
                f"UPDATE {vote_table} SET vote_type = ? WHERE user_id = ? AND {target_column} = ?",
                (vote_type, user_id, target_id),
            )
            current_vote = vote_type
        cursor.execute(
            f"""
            SELECT
                COALESCE(SUM(CASE WHEN vote_type = 'up' THEN 1 ELSE 0 END), 0) AS upvotes,
                COALESCE(SUM(CASE WHEN vote_type = 'down' THEN 1 ELSE 0 END), 0) AS downvotes
            FROM {vote_table}
            WHERE {target_column} = ?
            """,
            (target_id,),
        )
        counts = cursor.fetchone()
        cursor.execute(
            f"UPDATE {parent_table} SET upvotes = ?, downvotes = ? WHERE id = ?",
            (counts["upvotes"], counts["downvotes"], target_id),
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return {
        "upvotes": int(counts["upvotes"]),
        "downvotes": int(counts["downvotes"]),
        "user_vote": current_vote,
    }
