# api/routes_chat.py
from __future__ import annotations
import mimetypes
from typing import Optional

from fastapi import APIRouter, File, Form, Request, UploadFile

from backend.src.core import constants as C
from backend.src.core.errors import PayloadTooLarge, UnsupportedImage
from backend.src.core.runtime import AppRuntime
from backend.src.schemas.chat import ChatReply, ErrorOut
from backend.src.schemas.turns import ImagePart

router = APIRouter()


def client_key(request: Request) -> str:
    fwd = request.headers.get("x-forwarded-for", "")
    first = fwd.split(",")[0].strip()
    if first:
        return first
    return request.client.host if request.client else "unknown"


async def read_image(f: Optional[UploadFile]) -> Optional[ImagePart]:
    if f is None:
        return None
    data = await f.read(C.MAX_IMAGE_BYTES + 1)
    if not data:
        return None
    if len(data) > C.MAX_IMAGE_BYTES:
        raise PayloadTooLarge(f"upload over {C.MAX_IMAGE_BYTES} bytes")
    mime = (f.content_type or "").lower()
    if not mime or mime == "application/octet-stream":
        mime = mimetypes.guess_type(f.filename or "")[0] or "image/png"
    if mime not in C.ALLOWED_IMAGE_TYPES:
        raise UnsupportedImage(f"content type {mime}")
    if mime == "image/jpg":
        mime = "image/jpeg"
    return ImagePart.from_bytes(data, mime, f.filename)


ERROR_RESPONSES = {code: {"model": ErrorOut} for code in (400, 408, 413, 429, 500, 503)}


@router.post("/chat", response_model=ChatReply, responses=ERROR_RESPONSES)
async def chat(
    request: Request,
    message: str = Form(""),
    session_id: Optional[str] = Form(None),
    thread_id: Optional[str] = Form(None),
    screenshot: Optional[UploadFile] = File(None),
):
    rt: AppRuntime = request.app.state.runtime
    image = await read_image(screenshot)
    return await rt.service.handle(session_id or thread_id, client_key(request), message, image)


@router.get("/health")
def health(request: Request):
    rt: AppRuntime = request.app.state.runtime
    return {"status": "ok", "sessions": len(rt.store)}
