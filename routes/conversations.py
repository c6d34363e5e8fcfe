from fastapi import APIRouter, Depends, HTTPException, status

from db.database import get_db
from models.message import ConversationCreate, ConversationMemberAdd, ConversationUpdate
from storage.conversations import (
    add_member,
    create_conversation,
    get_conversation,
    is_participant,
    list_members,
    list_messages,
    list_user_conversations,
    remove_member,
    update_conversation,
)
from storage.users import get_user
from utils.auth import require_user
from utils.serialize import to_api

router = APIRouter()


def require_participant(conn, conversation_id: int, user_id: int) -> dict:
    """404 for unknown conversations, 403 when the caller is not in it."""
    conversation = get_conversation(conn, conversation_id)
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")
    if not is_participant(conn, conversation_id, user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a participant of this conversation")
    return conversation


@router.get("")
async def conversations_index(user_id: int = Depends(require_user), conn = Depends(get_db)):
    return to_api(list_user_conversations(conn, user_id))


@router.post("")
async def new_conversation(payload: ConversationCreate, user_id: int = Depends(require_user), conn = Depends(get_db)):
    participant_ids = [user_id, *payload.participant_ids]
    for participant_id in participant_ids:
        if not get_user(conn, participant_id):
            raise HTTPException(status_code=404, detail=f"User {participant_id} not found")
    return to_api(create_conversation(conn, participant_ids))


@router.patch("/{conversation_id}")
async def edit_conversation(
    conversation_id: int,
    payload: ConversationUpdate,
    user_id: int = Depends(require_user),
    conn = Depends(get_db),
):
    require_participant(conn, conversation_id, user_id)
    return to_api(update_conversation(conn, conversation_id, payload.model_dump(exclude_unset=True)))


@router.get("/{conversation_id}/messages")
async def conversation_messages(conversation_id: int, user_id: int = Depends(require_user), conn = Depends(get_db)):
    require_participant(conn, conversation_id, user_id)
    return to_api(list_messages(conn, conversation_id))


@router.get("/{conversation_id}/members")
async def conversation_members(conversation_id: int, user_id: int = Depends(require_user), conn = Depends(get_db)):
    require_participant(conn, conversation_id, user_id)
    return to_api(list_members(conn, conversation_id))


@router.post("/{conversation_id}/members")
async def add_conversation_member(
    conversation_id: int,
    payload: ConversationMemberAdd,
    user_id: int = Depends(require_user),
    conn = Depends(get_db),
):
    require_participant(conn, conversation_id, user_id)
    if not get_user(conn, payload.user_id):
        raise HTTPException(status_code=404, detail="User not found")
    try:
        add_member(conn, conversation_id, payload.user_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"message": "Member added successfully"}


@router.delete("/{conversation_id}/members/{member_id}")
async def remove_conversation_member(
    conversation_id: int,
    member_id: int,
    user_id: int = Depends(require_user),
    conn = Depends(get_db),
):
    require_participant(conn, conversation_id, user_id)
    if not remove_member(conn, conversation_id, member_id):
        raise HTTPException(status_code=404, detail="Member not found")
    return {"message": "Member removed successfully"}
