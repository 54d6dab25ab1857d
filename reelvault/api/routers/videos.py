# ─────────────────────────────────────────────────────────────────────────────
# 🎬 Videos API (list, upload, rename, delete)
# ─────────────────────────────────────────────────────────────────────────────

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, Form, Path, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from reelvault.api.deps import get_settings, get_video_service
from reelvault.core.config import Settings
from reelvault.core.exceptions import PayloadTooLarge
from reelvault.core.limiter import rate_limit
from reelvault.schemas.videos import RenameIn, RenameOut, SuccessOut, UploadOut, VideoOut
from reelvault.services.videos import VideoService

router = APIRouter(tags=["Videos"])
__all__ = ["router"]

_READ_CHUNK = 1024 * 1024


def _json(payload: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=jsonable_encoder(payload, by_alias=True), status_code=status_code)


async def _read_limited(upload: UploadFile, limit: int) -> bytes:
    """Read the multipart part into memory, failing as soon as it exceeds `limit`."""
    buf = bytearray()
    while True:
        chunk = await upload.read(_READ_CHUNK)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > limit:
            raise PayloadTooLarge(max_bytes=limit)
    return bytes(buf)


# ─────────────────────────────────────────────────────────────────────────────
# 📄 List
# ─────────────────────────────────────────────────────────────────────────────

@router.get("/videos", response_model=list[VideoOut], summary="List videos in the bucket")
@rate_limit("120/minute")
async def list_videos(request: Request, svc: VideoService = Depends(get_video_service)) -> JSONResponse:
    videos = await svc.list_videos()
    return _json([v.model_dump(by_alias=True) for v in videos])


# ─────────────────────────────────────────────────────────────────────────────
# ⬆️ Upload
# ─────────────────────────────────────────────────────────────────────────────

@router.post("/upload", response_model=UploadOut, summary="Upload one video (multipart field `video`)")
@rate_limit("20/minute")
async def upload_video(
    request: Request,
    video: Optional[UploadFile] = File(None),
    file: Optional[UploadFile] = File(None),
    uploaderId: Optional[str] = Form(None),
    uploaderName: Optional[str] = Form(None),
    svc: VideoService = Depends(get_video_service),
    cfg: Settings = Depends(get_settings),
) -> JSONResponse:
    part = video or file
    data = await _read_limited(part, cfg.MAX_UPLOAD_BYTES) if part is not None else None

    result = await svc.upload(
        data,
        filename=part.filename if part is not None else None,
        content_type=part.content_type if part is not None else None,
        uploader_id=uploaderId,
        uploader_name=uploaderName,
    )
    return _json(UploadOut(key=result.key, url=result.url))


# ─────────────────────────────────────────────────────────────────────────────
# ✏️ Rename / 🗑️ Delete
# ─────────────────────────────────────────────────────────────────────────────

@router.patch("/videos/{key:path}", response_model=RenameOut, summary="Rename a video")
@rate_limit("30/minute")
async def rename_video(
    request: Request,
    key: str = Path(..., description="Object key, e.g. videos/1690000000-clip.mp4"),
    payload: RenameIn = Body(...),
    svc: VideoService = Depends(get_video_service),
) -> JSONResponse:
    new_key = await svc.rename(key, payload.new_name)
    return _json(RenameOut(key=new_key))


@router.delete("/videos/{key:path}", response_model=SuccessOut, summary="Delete a video")
@rate_limit("30/minute")
async def delete_video(
    request: Request,
    key: str = Path(..., description="Object key, e.g. videos/1690000000-clip.mp4"),
    svc: VideoService = Depends(get_video_service),
) -> JSONResponse:
    await svc.delete(key)
    return _json(SuccessOut())
