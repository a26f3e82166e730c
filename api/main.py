from __future__ import annotations

import logging
import math
import uuid
from dataclasses import asdict
from typing import Dict, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, File, Query, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import GestureModel, PinResponse, SessionResponse, ToggleSeriesModel, ViewerSettingsModel
from core.charts import RenderPayload, build_line_chart, to_vega_spec
from core.data import check_extension
from core.errors import IngestionError, NothingToPin, UnknownChart, UnknownSession, UploadInProgress
from core.gestures import GestureEvent, dispatch_gesture
from core.instances import ChartInstanceManager
from core.settings import normalize_settings


app = FastAPI(title="Sheet Chart Viewer API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

DRAFT_REF = "draft"
DEFAULT_SESSION = "default"

# In-memory only: a session's charts live until it is deleted or the process exits.
# Routes are async so every workspace is touched from the event loop only.
_workspaces: Dict[str, ChartInstanceManager] = {}


def get_workspace(session: str) -> ChartInstanceManager:
    ws = _workspaces.get(session)
    if ws is None:
        if session != DEFAULT_SESSION:
            raise UnknownSession(session)
        ws = ChartInstanceManager()
        _workspaces[session] = ws
    return ws


def _chart_id(ref: str) -> Optional[str]:
    return None if ref == DRAFT_REF else ref


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception, status_code: int) -> JSONResponse:
    message = exc.message if isinstance(exc, IngestionError) else str(exc)
    return JSONResponse(status_code=status_code, content={"error": message, "type": type(exc).__name__})


def _render(ws: ChartInstanceManager, chart_id: Optional[str], *, spec: bool = True) -> JSONResponse:
    payload: RenderPayload = ws.render(chart_id)
    body = asdict(payload)
    body["id"] = chart_id or DRAFT_REF
    body["hidden_series"] = sorted(payload.hidden_series)
    body["spec"] = None
    if spec:
        chart = build_line_chart(payload, height=ws.settings.chart_height)
        body["spec"] = to_vega_spec(chart) if chart is not None else None
    return _json(body)


@app.exception_handler(UnknownSession)
async def unknown_session_handler(request: Request, exc: UnknownSession):
    return _error(exc, 404)


@app.post("/sessions")
async def create_session(settings: Optional[ViewerSettingsModel] = None):
    session = uuid.uuid4().hex
    raw = settings.model_dump() if settings is not None else {}
    _workspaces[session] = ChartInstanceManager(settings=normalize_settings(raw))
    return _json(SessionResponse(session=session).model_dump())


@app.delete("/sessions/{session}")
async def delete_session(session: str):
    ws = get_workspace(session)
    if ws.is_loading:
        return _error(UploadInProgress(), 409)
    _workspaces.pop(session, None)
    return _json({"deleted": session})


@app.get("/meta/settings")
async def meta_settings(session: str = Query(default=DEFAULT_SESSION)):
    ws = get_workspace(session)
    try:
        return _json(asdict(ws.settings))
    except Exception as exc:
        logger.exception("meta_settings failed")
        return _error(exc, 500)


@app.post("/upload")
async def upload(file: UploadFile = File(...), session: str = Query(default=DEFAULT_SESSION)):
    ws = get_workspace(session)
    filename = file.filename or ""
    try:
        check_extension(filename)
        with ws.uploading():
            content = await file.read()
            dataset = ws.ingest(filename, content)
    except UploadInProgress as exc:
        return _error(exc, 409)
    except IngestionError as exc:
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("upload failed")
        return _error(exc, 500)
    if dataset is None:
        return _json({"headers": [], "row_count": 0, "reset": True})
    return _json({"headers": list(dataset.headers), "row_count": dataset.row_count, "reset": False})


@app.delete("/draft")
async def reset_draft(session: str = Query(default=DEFAULT_SESSION)):
    ws = get_workspace(session)
    # An upload awaiting its body would otherwise land on top of the reset.
    if ws.is_loading:
        return _error(UploadInProgress(), 409)
    ws.reset_draft()
    return _json({"reset": True})


@app.post("/draft/pin")
async def pin_draft(session: str = Query(default=DEFAULT_SESSION)):
    ws = get_workspace(session)
    try:
        chart_id = ws.pin_draft()
    except NothingToPin as exc:
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("pin_draft failed")
        return _error(exc, 500)
    return _json(PinResponse(id=chart_id).model_dump())


@app.get("/charts")
async def list_charts(session: str = Query(default=DEFAULT_SESSION)):
    ws = get_workspace(session)
    charts = [
        {"id": c.id, "headers": list(c.headers), "row_count": c.dataset.row_count, "hidden_series": sorted(c.visibility.hidden)}
        for c in ws.instances.values()
    ]
    draft = None
    if ws.draft is not None:
        draft = {"headers": list(ws.draft.headers), "row_count": ws.row_count, "hidden_series": sorted(ws.draft_visibility.hidden)}
    return _json({"charts": charts, "draft": draft, "is_loading": ws.is_loading, "error": ws.error})


@app.get("/charts/{chart_ref}")
async def render_chart(chart_ref: str, session: str = Query(default=DEFAULT_SESSION), spec: bool = Query(default=True)):
    ws = get_workspace(session)
    try:
        return _render(ws, _chart_id(chart_ref), spec=spec)
    except UnknownChart as exc:
        return _error(exc, 404)
    except Exception as exc:
        logger.exception("render_chart failed")
        return _error(exc, 500)


@app.delete("/charts/{chart_id}")
async def remove_chart(chart_id: str, session: str = Query(default=DEFAULT_SESSION)):
    ws = get_workspace(session)
    try:
        ws.remove(chart_id)
    except UnknownChart as exc:
        return _error(exc, 404)
    return _json({"removed": chart_id})


@app.post("/charts/{chart_ref}/gesture")
async def gesture(chart_ref: str, event: GestureModel, session: str = Query(default=DEFAULT_SESSION), spec: bool = Query(default=False)):
    ws = get_workspace(session)
    try:
        chart_id = _chart_id(chart_ref)
        dispatch_gesture(ws.viewport_for(chart_id), GestureEvent(**event.model_dump()))
        return _render(ws, chart_id, spec=spec)
    except UnknownChart as exc:
        return _error(exc, 404)
    except Exception as exc:
        logger.exception("gesture failed")
        return _error(exc, 500)


@app.post("/charts/{chart_ref}/reset-zoom")
async def reset_zoom(chart_ref: str, session: str = Query(default=DEFAULT_SESSION), spec: bool = Query(default=True)):
    ws = get_workspace(session)
    try:
        chart_id = _chart_id(chart_ref)
        ws.viewport_for(chart_id).reset_zoom()
        return _render(ws, chart_id, spec=spec)
    except UnknownChart as exc:
        return _error(exc, 404)
    except Exception as exc:
        logger.exception("reset_zoom failed")
        return _error(exc, 500)


@app.post("/charts/{chart_ref}/toggle")
async def toggle_series(chart_ref: str, body: ToggleSeriesModel, session: str = Query(default=DEFAULT_SESSION), spec: bool = Query(default=True)):
    ws = get_workspace(session)
    try:
        chart_id = _chart_id(chart_ref)
        ws.toggle_series(chart_id, body.series)
        return _render(ws, chart_id, spec=spec)
    except UnknownChart as exc:
        return _error(exc, 404)
    except Exception as exc:
        logger.exception("toggle_series failed")
        return _error(exc, 500)
