import logging
import os
import random
import shutil
import time
from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool
from searchtool.config import settings

logger = logging.getLogger(__name__)

PHOTO_TYPES = {"image/jpeg", "image/png", "image/webp"}
CV_TYPES = {"application/pdf"}
UPLOAD_CHUNK_SIZE = 1024 * 1024


class UploadRejected(ValueError):
    pass


def _ensure_dir(kind: str) -> str:
    d = os.path.join(settings.UPLOAD_DIR, kind)
    os.makedirs(d, exist_ok=True)
    return d


def _copy_to_disk(upload: UploadFile, path: str) -> int:
    # chunked copy; runs in a worker thread
    upload.file.seek(0)
    with open(path, "wb") as f:
        shutil.copyfileobj(upload.file, f, UPLOAD_CHUNK_SIZE)
    return os.path.getsize(path)


def unique_filename(original: str) -> str:
    ext = os.path.splitext(original or "")[1].lower()
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"


async def save_upload(upload: UploadFile, kind: str, allowed: set) -> dict:
    """Write an upload under UPLOAD_DIR/<kind>/ and describe it.

    Returns ``{"filename", "path", "mime", "size"}``.
    """
    if upload.content_type not in allowed:
        raise UploadRejected(f"Unsupported file type: {upload.content_type}")

    d = _ensure_dir(kind)
    filename = unique_filename(upload.filename)
    path = os.path.join(d, filename)
    size = await run_in_threadpool(_copy_to_disk, upload, path)
    logger.info("Stored %s upload %s (%d bytes)", kind, filename, size)
    return {"filename": filename, "path": path, "mime": upload.content_type, "size": size}


def public_url(base_url: str, kind: str, filename: str) -> str:
    return f"{str(base_url).rstrip('/')}/uploads/{kind}/{filename}"
