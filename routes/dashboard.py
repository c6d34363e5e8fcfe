from fastapi import APIRouter, Depends

from db.database import get_db
from storage.dashboard import get_dashboard
from utils.auth import require_user
from utils.serialize import to_api

router = APIRouter()

@router.get("")
async def dashboard(user_id: int = Depends(require_user), conn = Depends(get_db)):
    """Counts and the coming week's open events for the signed-in user."""
    return to_api(get_dashboard(conn, user_id))
