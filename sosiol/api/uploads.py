"""Avatar uploads into the content-addressed store, and serving them back."""
import logging
import mimetypes

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import Response

from sosiol.config import settings
from sosiol.core.exceptions import InvalidUploadError
from sosiol.schemas.common import ErrorResponse
from sosiol.services.storage_service import get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["uploads"])
# Mounted without the API prefix so stored URLs read /uploads/<name>
files_router = APIRouter(tags=["uploads"])

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
_CHUNK_SIZE = 64 * 1024


async def _read_limited(upload: UploadFile, limit: int) -> bytes:
    chunks: list[bytes] = []
    size = 0
    while True:
        chunk = await upload.read(_CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > limit:
            raise InvalidUploadError(f"File too large. Maximum size is {limit // (1024 * 1024)}MB")
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/avatar", responses={400: {"model": ErrorResponse}})
async def upload_avatar(avatar: UploadFile = File(...)):
    """Store an avatar image and return the URL it is served from."""
    extension = ALLOWED_IMAGE_TYPES.get((avatar.content_type or "").lower())
    if extension is None:
        raise InvalidUploadError("Only JPEG, PNG, GIF and WebP images are allowed")

    content = await _read_limited(avatar, settings.upload_max_bytes)
    if not content:
        raise InvalidUploadError("Uploaded file is empty")

    name = get_storage().put(content, extension)
    logger.info("Stored avatar %s (%d bytes)", name, len(content))
    return {"url": f"/uploads/{name}"}


@files_router.get("/uploads/{name}", responses={404: {"model": ErrorResponse}})
async def serve_upload(name: str):
    content = get_storage().get(name)
    if content is None:
        raise HTTPException(status_code=404, detail="File not found")
    media_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )
