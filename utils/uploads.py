from __future__ import annotations

import logging
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile, status

from config import get_max_upload_bytes, get_upload_dir

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE = 1024 * 1024
UPLOAD_URL_PREFIX = "/uploads/"
_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredUpload:
    filename: str
    original_name: str
    size: int
    mime_type: Optional[str]
    path: Path

    @property
    def url(self) -> str:
        return f"{UPLOAD_URL_PREFIX}{self.filename}"


def generate_filename(original_name: str, keep_stem: bool = False) -> str:
    """Random storage name; with keep_stem, "<stem>-<millis>-<rand><ext>" like chat attachments."""
    if not keep_stem:
        return secrets.token_hex(16)
    original = Path(original_name)
    stem = _UNSAFE_CHARS_RE.sub("_", original.stem).strip("._")[:80] or "file"
    ext = _UNSAFE_CHARS_RE.sub("", original.suffix)[:16]
    return f"{stem}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"


async def save_upload(file: Optional[UploadFile], keep_stem: bool = False) -> StoredUpload:
    """Stream an upload into a temp file, enforce the size cap, then move it into place."""
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")
    upload_dir = get_upload_dir()
    limit = get_max_upload_bytes()
    temp_path = upload_dir / f".tmp-{secrets.token_hex(8)}"
    size = 0
    try:
        with open(temp_path, "wb") as out:
            while True:
                chunk = await file.read(UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > limit:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"File too large (max {limit // (1024 * 1024)}MB)",
                    )
                out.write(chunk)
        final_name = generate_filename(file.filename, keep_stem=keep_stem)
        final_path = upload_dir / final_name
        temp_path.replace(final_path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise
    finally:
        await file.close()
    return StoredUpload(
        filename=final_name,
        original_name=file.filename,
        size=size,
        mime_type=file.content_type,
        path=final_path,
    )


def discard_upload(stored: StoredUpload) -> None:
    """Remove a stored file after a downstream failure."""
    try:
        stored.path.unlink(missing_ok=True)
    except OSError:
        logger.exception("Could not remove orphaned upload %s", stored.path)


def resolve_upload_path(filename: str) -> Optional[Path]:
    """Map a stored filename to its path, refusing anything that escapes the uploads dir."""
    if not filename or Path(filename).name != filename or filename.startswith("."):
        return None
    path = get_upload_dir() / filename
    return path if path.is_file() else None
