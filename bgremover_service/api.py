"""
FastAPI layer exposing Gemini background removal.

Endpoints:
 - GET /health
 - GET /                              browser page
 - POST /sessions                     create a session
 - GET /sessions/{id}                 session snapshot
 - POST /sessions/{id}/image          submit a file (multipart `file`)
 - POST /sessions/{id}/reset
 - DELETE /sessions/{id}
 - GET /sessions/{id}/result          PNG download
 - GET /previews/{token}              source preview
 - POST /remove-bg                    one-shot removal, PNG out
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
import logging
from typing import Optional
from urllib.parse import quote

from fastapi import Depends, FastAPI, File, HTTPException, Request, Response, UploadFile
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from . import config
from .errors import MissingCredentialError, NoImageReturnedError, ServiceRefusalError
from .genai_client import remove_background
from .pipeline import process_image_bytes
from .postprocessing import decode_processed, download_filename, ensure_png
from .preprocessing import SourceImage, is_image_media_type
from .session import AppState, SessionController, SessionStore
from .ui import INDEX_HTML

settings = config.get_settings()
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    logger.info("Closing %d open sessions", len(app.state.store))
    app.state.store.close_all()


app = FastAPI(title="Gemini Background Removal Service", version="0.1.0", lifespan=lifespan)
app.state.store = SessionStore(remover=remove_background, ttl_seconds=settings.session_ttl_seconds)


class SessionSnapshot(BaseModel):
    id: str
    state: AppState
    filename: Optional[str] = None
    previewUrl: Optional[str] = None
    resultUrl: Optional[str] = None
    error: Optional[str] = None


def get_store(request: Request) -> SessionStore:
    return request.app.state.store


def _get_controller(session_id: str, store: SessionStore) -> SessionController:
    try:
        return store.get(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Unknown session") from exc


def _snapshot(session_id: str, controller: SessionController) -> SessionSnapshot:
    session = controller.session
    return SessionSnapshot(
        id=session_id,
        state=session.state,
        filename=session.source.filename if session.source else None,
        previewUrl=session.preview_url,
        resultUrl=f"/sessions/{session_id}/result" if session.state is AppState.RESULT else None,
        error=session.error_message or None,
    )


def _content_disposition(filename: str) -> str:
    fallback = filename.encode("ascii", "ignore").decode("ascii").replace('"', "")
    fallback = fallback or download_filename(None, settings)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


async def _read_upload(file: UploadFile) -> SourceImage:
    content_type = file.content_type or ""
    if not is_image_media_type(content_type):
        raise HTTPException(status_code=415, detail=f"Unsupported media type: {content_type or 'unknown'}")
    data = await file.read()
    return SourceImage(data=data, content_type=content_type, filename=file.filename)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/", response_class=HTMLResponse)
def index():
    return HTMLResponse(INDEX_HTML)


@app.post("/sessions", response_model=SessionSnapshot, status_code=201)
def create_session(store: SessionStore = Depends(get_store)):
    session_id, controller = store.create()
    return _snapshot(session_id, controller)


@app.get("/sessions/{session_id}", response_model=SessionSnapshot)
def get_session(session_id: str, store: SessionStore = Depends(get_store)):
    return _snapshot(session_id, _get_controller(session_id, store))


@app.post("/sessions/{session_id}/image", response_model=SessionSnapshot)
async def submit_image(
    session_id: str,
    response: Response,
    file: UploadFile = File(...),
    wait: bool = False,
    store: SessionStore = Depends(get_store),
):
    controller = _get_controller(session_id, store)
    image = await _read_upload(file)

    task = controller.start(image)
    if wait:
        # asyncio.wait does not raise if a newer submission cancels the task.
        await asyncio.wait({task})
    if controller.state is AppState.LOADING:
        response.status_code = 202
    return _snapshot(session_id, controller)


@app.post("/sessions/{session_id}/reset", response_model=SessionSnapshot)
def reset_session(session_id: str, store: SessionStore = Depends(get_store)):
    controller = _get_controller(session_id, store)
    controller.reset()
    return _snapshot(session_id, controller)


@app.delete("/sessions/{session_id}", status_code=204)
def delete_session(session_id: str, store: SessionStore = Depends(get_store)):
    try:
        store.close(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Unknown session") from exc
    return Response(status_code=204)


@app.get("/sessions/{session_id}/result")
def download_result(session_id: str, store: SessionStore = Depends(get_store)):
    controller = _get_controller(session_id, store)
    session = controller.session
    if session.state is not AppState.RESULT or not session.processed_image:
        raise HTTPException(status_code=409, detail=f"No result available (state={session.state.value})")

    try:
        png_bytes = ensure_png(decode_processed(session.processed_image))
    except ValueError as exc:
        logger.exception("Unreadable result for session %s: %s", session_id, exc)
        raise HTTPException(status_code=502, detail="Service returned an unreadable image") from exc

    name = download_filename(session.source.filename if session.source else None, settings)
    return Response(
        content=png_bytes,
        media_type="image/png",
        headers={"Content-Disposition": _content_disposition(name)},
    )


@app.get("/previews/{token}")
def get_preview(token: str, store: SessionStore = Depends(get_store)):
    image = store.previews.get(token)
    if image is None:
        raise HTTPException(status_code=404, detail="Preview not found")
    return Response(content=image.data, media_type=image.content_type)


@app.post("/remove-bg")
async def remove_bg(file: UploadFile = File(...), store: SessionStore = Depends(get_store)):
    image = await _read_upload(file)
    try:
        png_bytes = await process_image_bytes(
            image.data,
            content_type=image.content_type,
            filename=image.filename,
            remover=store.remover,
        )
    except MissingCredentialError as exc:
        logger.error("Background removal unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except ServiceRefusalError as exc:
        logger.warning("Model refused to return an image: %s", exc.text)
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except NoImageReturnedError as exc:
        logger.warning("Model returned no image for %s", image.filename)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("Background removal failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc) or "Background removal failed") from exc

    return Response(
        content=png_bytes,
        media_type="image/png",
        headers={"Content-Disposition": _content_disposition(download_filename(image.filename, settings))},
    )
