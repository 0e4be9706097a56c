"""Pattern Digitizer web app: upload page, digitize action, results, and a JSON API."""

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from pathlib import Path
from typing import Literal

from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from pattern_digitizer import __version__
from pattern_digitizer.ai.digitizer_base import BaseDigitizer
from pattern_digitizer.ai.factory import digitize_pattern, get_digitizer
from pattern_digitizer.core.config import Settings, get_config, validate_settings
from pattern_digitizer.core.encoding import (
    ACCEPTED_IMAGE_TYPES,
    encode_bytes,
    encode_upload,
    guess_mime_type,
)
from pattern_digitizer.core.errors import DigitizeError, EncodingError, InputError, SessionBusyError
from pattern_digitizer.core.logging import dump_flight_log, setup_logging
from pattern_digitizer.ui.results import build_result_view
from pattern_digitizer.ui.session import NO_IMAGE_MESSAGE, DigitizeSession, SessionStore, WorkflowState

_log = logging.getLogger(__name__)

SESSION_COOKIE = "pd_session"
ERROR_MESSAGE_PREFIX = "Đã xảy ra lỗi: "
LOADING_MESSAGES = [
    "Đang phân tích vải và phối cảnh...",
    "Đang điều chỉnh nếp nhăn và độ rủ...",
    "Đang truy vết các họa tiết...",
    "Đang xác định kiểu lặp lại...",
    "Đang tạo mẫu lặp liền mạch...",
    "Đang trích xuất bảng màu...",
    "Đang hoàn tất các tệp đầu ra...",
]


@lru_cache(maxsize=1)
def _get_settings() -> Settings:
    return validate_settings(get_config())


@lru_cache(maxsize=1)
def _get_digitizer() -> BaseDigitizer:
    return get_digitizer(_get_settings())


@lru_cache(maxsize=1)
def _get_session_store() -> SessionStore:
    settings = _get_settings()
    return SessionStore(max_sessions=settings.max_sessions, idle_ttl_seconds=settings.session_idle_ttl_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize-or-abort: a ConfigurationError here stops the server before it accepts requests."""
    settings = _get_settings()
    setup_logging()
    digitizer = _get_digitizer()
    _log.info(
        "Pattern Digitizer %s ready (digitizer=%s, model=%s)",
        __version__,
        digitizer.get_model_card().name,
        settings.model,
    )
    try:
        yield
    finally:
        _get_session_store().clear()


app = FastAPI(title="Pattern Digitizer", version=__version__, lifespan=lifespan)

_here = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(_here / "templates"))
app.mount("/static", StaticFiles(directory=str(_here / "static")), name="static")


class HealthOut(BaseModel):
    status: str
    digitizer: str
    model: str


def _session_for(request: Request, store: SessionStore) -> DigitizeSession:
    return store.get_or_create(request.cookies.get(SESSION_COOKIE))


def _redirect_home(session: DigitizeSession) -> RedirectResponse:
    response = RedirectResponse("/", status_code=303)
    response.set_cookie(SESSION_COOKIE, session.session_id, httponly=True, samesite="lax")
    return response


@app.get("/", response_class=HTMLResponse)
def index(
    request: Request,
    view: Literal["single", "tiled"] = Query(default="single", description="Preview mode for the result tile"),
    store: SessionStore = Depends(_get_session_store),
) -> HTMLResponse:
    """Render the uploader, digitize action, error banner and (when available) the result."""
    # Sessions are only created by POST actions; a plain page view does not allocate one.
    session = store.get(request.cookies.get(SESSION_COOKIE))
    result = session.result if session else None
    result_view = build_result_view(result, tiled=view == "tiled") if result else None
    response = templates.TemplateResponse(
        request,
        "index.html",
        {
            "state": session.state.value if session else WorkflowState.idle.value,
            "busy": bool(session and session.is_busy),
            "has_image": bool(session and session.image is not None),
            "preview_url": f"/preview/{session.preview_id}" if session and session.preview_id else None,
            "error": session.error if session else None,
            "result": result_view,
            "view": view,
            "accept": ", ".join(ACCEPTED_IMAGE_TYPES),
            "loading_messages": LOADING_MESSAGES,
        },
    )
    if session is None and request.cookies.get(SESSION_COOKIE):
        response.delete_cookie(SESSION_COOKIE)
    return response


@app.post("/upload")
async def upload(
    request: Request,
    file: UploadFile | None = File(default=None),
    store: SessionStore = Depends(_get_session_store),
) -> RedirectResponse:
    """
    Select a new image. Valid from any state: resets to previewing and clears prior results.
    A request still in flight for the previous image can no longer update this session.
    """
    session = _session_for(request, store)
    if file is None or not file.filename:
        return _redirect_home(session)
    try:
        content = await file.read()
    except OSError as e:
        _log.warning("Upload read failed: %s", e)
        session.reject_upload(f"{ERROR_MESSAGE_PREFIX}{e}")
        return _redirect_home(session)
    mime_type = guess_mime_type(file.filename, file.content_type)
    session.select_image(content, file.filename, mime_type)
    _log.info("Session %s selected %s (%s, %d bytes)", session.session_id, file.filename, mime_type, len(content))
    return _redirect_home(session)


@app.post("/digitize")
async def digitize(
    request: Request,
    store: SessionStore = Depends(_get_session_store),
    digitizer: BaseDigitizer = Depends(_get_digitizer),
) -> RedirectResponse:
    """Encode the selected image and run one digitization request; outcome lands in the session."""
    session = _session_for(request, store)
    try:
        token, image = session.begin()
    except InputError:
        return _redirect_home(session)
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))

    try:
        encoded = encode_bytes(image.content, image.mime_type)
        data = await digitize_pattern(digitizer, encoded)
    except (DigitizeError, EncodingError) as e:
        session.fail(token, f"{ERROR_MESSAGE_PREFIX}{e}")
        path = dump_flight_log(session.session_id)
        if path:
            _log.warning("Flight log written to %s", path)
    else:
        session.complete(token, data)
    return _redirect_home(session)


@app.post("/reset")
def reset(request: Request, store: SessionStore = Depends(_get_session_store)) -> RedirectResponse:
    """Tear down the caller's session and release its preview."""
    store.discard(request.cookies.get(SESSION_COOKIE))
    response = RedirectResponse("/", status_code=303)
    response.delete_cookie(SESSION_COOKIE)
    return response


@app.get("/preview/{preview_id}")
def preview(preview_id: str, store: SessionStore = Depends(_get_session_store)) -> Response:
    item = store.previews.get(preview_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Preview not found")
    return Response(content=item.content, media_type=item.mime_type, headers={"Cache-Control": "no-store"})


@app.get("/api/session")
def api_session(request: Request, store: SessionStore = Depends(_get_session_store)) -> JSONResponse:
    """Workflow state of the caller's session (for polling from a second tab)."""
    session = store.get(request.cookies.get(SESSION_COOKIE))
    state = session.state if session else WorkflowState.idle
    return JSONResponse(
        content={
            "state": state.value,
            "busy": bool(session and session.is_busy),
            "error": session.error if session else None,
        }
    )


@app.post("/api/digitize")
async def api_digitize(
    file: UploadFile | None = File(default=None),
    digitizer: BaseDigitizer = Depends(_get_digitizer),
) -> JSONResponse:
    """Stateless JSON variant: multipart image in, PatternData out."""
    if file is None or not file.filename:
        return JSONResponse(
            content={"status": "error", "kind": "input", "message": NO_IMAGE_MESSAGE},
            status_code=400,
        )
    try:
        encoded = await encode_upload(file)
    except EncodingError as e:
        return JSONResponse(content={"status": "error", "kind": "io", "message": str(e)}, status_code=400)
    try:
        data = await digitize_pattern(digitizer, encoded)
    except DigitizeError as e:
        return JSONResponse(content={"status": "error", "kind": e.kind, "message": str(e)}, status_code=502)
    return JSONResponse(content=data.model_dump(mode="json"))


@app.get("/api/health", response_model=HealthOut)
def api_health(
    digitizer: BaseDigitizer = Depends(_get_digitizer),
) -> HealthOut:
    card = digitizer.get_model_card()
    return HealthOut(status="ok", digitizer=card.name, model=card.version)
