import logging

from fastapi import APIRouter, Depends, HTTPException, status

from db.database import get_db
from models.study_group import StudyGroupCreate, StudyGroupUpdate, StudySessionCreate
from storage.courses import get_course
from storage.study_groups import (
    create_group,
    get_group,
    is_group_member,
    join_group,
    leave_group,
    list_group_members,
    list_groups,
    list_user_groups,
    schedule_session,
    update_group,
)
from utils.auth import require_user
from utils.serialize import to_api

logger = logging.getLogger(__name__)

router = APIRouter()


def _load_group(conn, group_id: int) -> dict:
    group = get_group(conn, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Study group not found")
    return group


@router.get("")
async def groups_index(conn = Depends(get_db)):
    return to_api(list_groups(conn))


@router.get("/my")
async def my_groups(user_id: int = Depends(require_user), conn = Depends(get_db)):
    return to_api(list_user_groups(conn, user_id))


@router.post("")
async def new_group(payload: StudyGroupCreate, user_id: int = Depends(require_user), conn = Depends(get_db)):
    """Create a group; the creator becomes a member and gets the session events."""
    if payload.course_id is not None and not get_course(conn, payload.course_id):
        raise HTTPException(status_code=404, detail="Course not found")
    if payload.is_recurring and payload.meeting_date and not payload.recurring_pattern:
        raise HTTPException(status_code=400, detail="recurringPattern is required for recurring groups")
    data = payload.model_dump()
    if data["recurring_pattern"] is not None:
        data["recurring_pattern"] = data["recurring_pattern"].value
    return to_api(create_group(conn, user_id, data))


@router.get("/{group_id}/members")
async def group_members(group_id: int, user_id: int = Depends(require_user), conn = Depends(get_db)):
    _load_group(conn, group_id)
    return to_api(list_group_members(conn, group_id))


@router.post("/{group_id}/join")
async def join(group_id: int, user_id: int = Depends(require_user), conn = Depends(get_db)):
    _load_group(conn, group_id)
    try:
        copied = join_group(conn, user_id, group_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    logger.info("User %s joined study group %s (%s event(s) copied)", user_id, group_id, copied)
    return {"message": "Joined study group successfully"}


@router.post("/{group_id}/sessions")
async def new_session(
    group_id: int,
    payload: StudySessionCreate,
    user_id: int = Depends(require_user),
    conn = Depends(get_db),
):
    group = _load_group(conn, group_id)
    if not is_group_member(conn, group_id, user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a member of this study group")
    schedule_session(conn, group, payload.model_dump())
    return {"message": "Study session scheduled successfully"}


@router.patch("/{group_id}")
async def edit_group(
    group_id: int,
    payload: StudyGroupUpdate,
    user_id: int = Depends(require_user),
    conn = Depends(get_db),
):
    group = _load_group(conn, group_id)
    if group["creator_id"] != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the group creator can edit this group")
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("course_id") is not None and not get_course(conn, changes["course_id"]):
        raise HTTPException(status_code=404, detail="Course not found")
    return to_api(update_group(conn, group_id, changes))


@router.delete("/{group_id}/leave")
async def leave(group_id: int, user_id: int = Depends(require_user), conn = Depends(get_db)):
    _load_group(conn, group_id)
    if not leave_group(conn, user_id, group_id):
        raise HTTPException(status_code=404, detail="Not a member of this study group")
    return {"message": "Left study group successfully"}
