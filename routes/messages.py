from fastapi import APIRouter, Depends, File, Form, UploadFile

from db.database import get_db
from models.message import MessageCreate
from routes.conversations import require_participant
from storage.conversations import create_message
from utils.auth import require_user
from utils.serialize import to_api
from utils.uploads import discard_upload, save_upload

router = APIRouter()

@router.post("")
async def send_message(payload: MessageCreate, user_id: int = Depends(require_user), conn = Depends(get_db)):
    require_participant(conn, payload.conversation_id, user_id)
    return to_api(create_message(conn, user_id, payload.model_dump()))

@router.post("/file")
async def send_file(
    conversationId: int = Form(...),
    file: UploadFile = File(None),
    user_id: int = Depends(require_user),
    conn = Depends(get_db),
):
    """Attach an uploaded file to a new message; the stored name keeps the original stem."""
    require_participant(conn, conversationId, user_id)
    stored = await save_upload(file, keep_stem=True)
    try:
        message = create_message(
            conn,
            user_id,
            {
                "conversation_id": conversationId,
                "content": f"Sent a file: {stored.original_name}",
                "file_url": stored.url,
                "file_name": stored.original_name,
                "file_type": stored.mime_type,
                "file_size": stored.size,
            },
        )
    except Exception:
        discard_upload(stored)
        raise
    return to_api(message)
