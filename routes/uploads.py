from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from utils.uploads import resolve_upload_path

router = APIRouter()

@router.get("/{filename}")
async def serve_upload(filename: str):
    path = resolve_upload_path(filename)
    if path is None:
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path)
