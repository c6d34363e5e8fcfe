import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse

from db.database import get_db
from storage.courses import get_course
from storage.resources import create_resource, get_resource, list_resources, record_download
from utils.auth import require_user
from utils.serialize import to_api
from utils.uploads import discard_upload, resolve_upload_path, save_upload

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def resources_index(
    courseId: Optional[int] = None,
    type: Optional[str] = None,
    conn = Depends(get_db),
):
    return to_api(list_resources(conn, course_id=courseId, resource_type=type))


@router.post("")
async def upload_resource(
    title: str = Form(...),
    type: str = Form(...),
    courseId: int = Form(...),
    description: Optional[str] = Form(None),
    file: UploadFile = File(None),
    user_id: int = Depends(require_user),
    conn = Depends(get_db),
):
    """Store the file, then the resource row; the file is removed if the row cannot be written."""
    if not title.strip() or not type.strip():
        raise HTTPException(status_code=400, detail="Title and type are required")
    if not get_course(conn, courseId):
        raise HTTPException(status_code=404, detail="Course not found")
    stored = await save_upload(file)
    try:
        resource = create_resource(
            conn,
            {
                "title": title.strip(),
                "description": description,
                "type": type.strip(),
                "filename": stored.filename,
                "original_name": stored.original_name,
                "file_size": stored.size,
                "mime_type": stored.mime_type,
                "course_id": courseId,
                "uploader_id": user_id,
            },
        )
    except Exception:
        discard_upload(stored)
        raise
    logger.info("Resource %s uploaded by user %s (%s bytes)", resource["id"], user_id, stored.size)
    return to_api(resource)


@router.get("/{resource_id}/download")
async def download_resource(resource_id: int, conn = Depends(get_db)):
    resource = get_resource(conn, resource_id)
    if not resource:
        raise HTTPException(status_code=404, detail="Resource not found")
    path = resolve_upload_path(resource["filename"])
    if path is None:
        logger.warning("Resource %s points at missing file %s", resource_id, resource["filename"])
        raise HTTPException(status_code=404, detail="File not found")
    record_download(conn, resource_id)
    return FileResponse(path, filename=resource["title"], media_type=resource["mime_type"])
