from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from utils.dates import now_db
from utils.serialize import USER_PUBLIC_COLUMNS, row_to_dict, select_columns

CONVERSATION_COLUMNS = (
    "id",
    "type",
    "name",
    "description",
    "profile_picture",
    "created_at",
    "updated_at",
)

MESSAGE_COLUMNS = (
    "id",
    "content",
    "sender_id",
    "conversation_id",
    "file_url",
    "file_name",
    "file_type",
    "file_size",
    "created_at",
)

EDITABLE_COLUMNS = ("name", "description")


def _placeholders(values: Iterable[Any]) -> str:
    return ",".join("?" for _ in values)


def get_conversation(conn, conversation_id: int) -> Optional[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        f"SELECT {select_columns('c', CONVERSATION_COLUMNS)} FROM conversations c WHERE c.id = ?",
        (conversation_id,),
    )
    row = cursor.fetchone()
    return row_to_dict(row) if row else None


def is_participant(conn, conversation_id: int, user_id: int) -> bool:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT 1 FROM conversation_participants WHERE conversation_id = ? AND user_id = ?",
        (conversation_id, user_id),
    )
    return cursor.fetchone() is not None


def list_user_conversations(conn, user_id: int) -> List[Dict[str, Any]]:
    """Conversations of a user, each with its participants and latest message.

    Three queries in total regardless of how many conversations the user has.
    """
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT {select_columns('c', CONVERSATION_COLUMNS)}
        FROM conversations c
        JOIN conversation_participants cp ON cp.conversation_id = c.id
        WHERE cp.user_id = ?
        ORDER BY c.updated_at DESC, c.id DESC
        """,
        (user_id,),
    )
    conversations = [row_to_dict(row) for row in cursor.fetchall()]
    if not conversations:
        return []
    ids = [conversation["id"] for conversation in conversations]

    participants: Dict[int, List[Dict[str, Any]]] = {conversation_id: [] for conversation_id in ids}
    cursor.execute(
        f"""
        SELECT cp.conversation_id AS conversation_id, {select_columns('u', USER_PUBLIC_COLUMNS, 'user')}
        FROM conversation_participants cp
        JOIN users u ON u.id = cp.user_id
        WHERE cp.conversation_id IN ({_placeholders(ids)})
        ORDER BY cp.joined_at, cp.id
        """,
        ids,
    )
    for row in cursor.fetchall():
        participants[row["conversation_id"]].append(row_to_dict(row, "user")["user"])

    cursor.execute(
        f"""
        SELECT * FROM (
            SELECT
                {select_columns('m', MESSAGE_COLUMNS)},
                {select_columns('u', USER_PUBLIC_COLUMNS, 'sender')},
                ROW_NUMBER() OVER (
                    PARTITION BY m.conversation_id ORDER BY m.created_at DESC, m.id DESC
                ) AS rn
            FROM messages m
            JOIN users u ON u.id = m.sender_id
            WHERE m.conversation_id IN ({_placeholders(ids)})
        )
        WHERE rn = 1
        """,
        ids,
    )
    last_messages = {}
    for row in cursor.fetchall():
        message = row_to_dict(row, "sender")
        message.pop("rn", None)
        last_messages[message["conversation_id"]] = message

    for conversation in conversations:
        conversation["participants"] = participants[conversation["id"]]
        conversation["last_message"] = last_messages.get(conversation["id"])
    return conversations


def create_conversation(conn, participant_ids: List[int]) -> Dict[str, Any]:
    """Create a conversation and its participant rows in one transaction.

    Type is decided here from the participant count and never revisited.
    """
    unique_ids = list(dict.fromkeys(participant_ids))
    conversation_type = "group" if len(unique_ids) > 2 else "direct"
    cursor = conn.cursor()
    try:
        cursor.execute("INSERT INTO conversations (type) VALUES (?)", (conversation_type,))
        conversation_id = cursor.lastrowid
        cursor.executemany(
            "INSERT INTO conversation_participants (conversation_id, user_id) VALUES (?, ?)",
            [(conversation_id, user_id) for user_id in unique_ids],
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return get_conversation(conn, conversation_id)


def update_conversation(conn, conversation_id: int, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    fields = {key: value for key, value in changes.items() if key in EDITABLE_COLUMNS}
    assignments = "".join(f"{key} = ?, " for key in fields)
    conn.execute(
        f"UPDATE conversations SET {assignments}updated_at = ? WHERE id = ?",
        (*fields.values(), now_db(), conversation_id),
    )
    conn.commit()
    return get_conversation(conn, conversation_id)


def list_members(conn, conversation_id: int) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT {select_columns('u', USER_PUBLIC_COLUMNS)}, cp.joined_at AS joined_at
        FROM users u
        JOIN conversation_participants cp ON cp.user_id = u.id
        WHERE cp.conversation_id = ?
        ORDER BY cp.joined_at, cp.id
        """,
        (conversation_id,),
    )
    return [row_to_dict(row) for row in cursor.fetchall()]


def add_member(conn, conversation_id: int, user_id: int) -> None:
    """Raises ValueError when the user already participates."""
    if is_participant(conn, conversation_id, user_id):
        raise ValueError("User is already a member of this conversation")
    conn.execute(
        "INSERT INTO conversation_participants (conversation_id, user_id) VALUES (?, ?)",
        (conversation_id, user_id),
    )
    conn.commit()


def remove_member(conn, conversation_id: int, user_id: int) -> bool:
    cursor = conn.cursor()
    cursor.execute(
        "DELETE FROM conversation_participants WHERE conversation_id = ? AND user_id = ?",
        (conversation_id, user_id),
    )
    conn.commit()
    return cursor.rowcount > 0


def list_messages(conn, conversation_id: int) -> List[Dict[str, Any]]:
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT
            {select_columns('m', MESSAGE_COLUMNS)},
            {select_columns('u', USER_PUBLIC_COLUMNS, 'sender')}
        FROM messages m
        JOIN users u ON u.id = m.sender_id
        WHERE m.conversation_id = ?
        ORDER BY m.created_at, m.id
        """,
        (conversation_id,),
    )
    return [row_to_dict(row, "sender") for row in cursor.fetchall()]


def create_message(conn, sender_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO messages (content, sender_id, conversation_id, file_url, file_name, file_type, file_size)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (
            data.get("content"),
            sender_id,
            data["conversation_id"],
            data.get("file_url"),
            data.get("file_name"),
            data.get("file_type"),
            data.get("file_size"),
        ),
    )
    message_id = cursor.lastrowid
    cursor.execute(
        "UPDATE conversations SET updated_at = ? WHERE id = ?",
        (now_db(), data["conversation_id"]),
    )
    conn.commit()
    cursor.execute(
        f"SELECT {select_columns('m', MESSAGE_COLUMNS)} FROM messages m WHERE m.id = ?",
        (message_id,),
    )
    return row_to_dict(cursor.fetchone())
