from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from db.database import get_db
from models.user import ProfileUpdate
from storage.users import search_users, update_user
from utils.auth import require_user
from utils.serialize import to_api
from utils.uploads import discard_upload, save_upload

router = APIRouter()


@router.put("/profile")
async def update_profile(payload: ProfileUpdate, user_id: int = Depends(require_user), conn = Depends(get_db)):
    """Partial profile update; only the fields present in the body change."""
    user = update_user(conn, user_id, payload.model_dump(exclude_unset=True))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return to_api(user)


@router.post("/profile-picture")
async def upload_profile_picture(
    profilePicture: UploadFile = File(None),
    user_id: int = Depends(require_user),
    conn = Depends(get_db),
):
    stored = await save_upload(profilePicture)
    try:
        user = update_user(conn, user_id, {"profile_picture": stored.url})
    except Exception:
        discard_upload(stored)
        raise
    return to_api(user)


@router.get("/search")
async def search(q: Optional[str] = None, user_id: int = Depends(require_user), conn = Depends(get_db)):
    if not q or not q.strip():
        return []
    return to_api(search_users(conn, q, user_id))
