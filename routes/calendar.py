from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from db.database import get_db
from models.calendar import CalendarEventCreate, CalendarEventUpdate, EventCompletion
from storage.calendar import create_event, delete_event, get_event, list_events, set_event_completed, update_event
from storage.study_groups import get_group, is_group_member
from utils.auth import require_user
from utils.dates import to_db_datetime
from utils.serialize import to_api

router = APIRouter()


def _owned_event(conn, event_id: int, user_id: int) -> dict:
    event = get_event(conn, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    if event["user_id"] != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return event


def _require_group_member(conn, study_group_id, user_id: int) -> None:
    """Events may only be tied to a study group the caller belongs to."""
    if study_group_id is None:
        return
    if not get_group(conn, study_group_id):
        raise HTTPException(status_code=404, detail="Study group not found")
    if not is_group_member(conn, study_group_id, user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a member of this study group")


def _db_values(data: dict) -> dict:
    for key in ("start_date", "end_date"):
        if key in data:
            data[key] = to_db_datetime(data[key])
    for key in ("type", "priority"):
        if data.get(key) is not None:
            data[key] = data[key].value
    return data


@router.get("")
async def events_index(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    user_id: int = Depends(require_user),
    conn = Depends(get_db),
):
    return to_api(list_events(conn, user_id, to_db_datetime(start), to_db_datetime(end)))


@router.post("")
async def new_event(payload: CalendarEventCreate, user_id: int = Depends(require_user), conn = Depends(get_db)):
    _require_group_member(conn, payload.study_group_id, user_id)
    return to_api(create_event(conn, user_id, _db_values(payload.model_dump())))


@router.get("/{event_id}")
async def event_detail(event_id: int, user_id: int = Depends(require_user), conn = Depends(get_db)):
    return to_api(_owned_event(conn, event_id, user_id))


@router.put("/{event_id}")
async def edit_event(
    event_id: int,
    payload: CalendarEventUpdate,
    user_id: int = Depends(require_user),
    conn = Depends(get_db),
):
    _owned_event(conn, event_id, user_id)
    changes = _db_values(payload.model_dump(exclude_unset=True))
    _require_group_member(conn, changes.get("study_group_id"), user_id)
    for key in ("title", "type", "start_date"):
        if key in changes and changes[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be empty")
    return to_api(update_event(conn, event_id, changes))


@router.delete("/{event_id}")
async def remove_event(event_id: int, user_id: int = Depends(require_user), conn = Depends(get_db)):
    _owned_event(conn, event_id, user_id)
    delete_event(conn, event_id)
    return {"message": "Event deleted successfully"}


@router.patch("/{event_id}/complete")
async def complete_event(
    event_id: int,
    payload: EventCompletion,
    user_id: int = Depends(require_user),
    conn = Depends(get_db),
):
    _owned_event(conn, event_id, user_id)
    set_event_completed(conn, event_id, payload.completed)
    return {"message": "Event status updated"}
