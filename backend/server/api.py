"""
Visualization API routes — mounted as a sub-router on the main FastAPI app.

POST /api/visualize runs the engine for posted rows or an uploaded table;
the /api/series/* routes drive the session's hidden-series set.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from fastapi import APIRouter, HTTPException, Request

from core.models import (
    FieldDescriptor,
    SeriesToggleRequest,
    VisualizationResult,
    VisualizeRequest,
)
from core.storage import (
    get_hidden,
    get_session,
    get_session_meta,
    get_visualization,
    save_visualization,
)
from core.utils import df_to_records_safe
from skills.pipeline import visualize
from skills.select import archetype_renders
from skills.visibility import SeriesVisibility

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api", tags=["viz"])


def require_session_id(request: Request) -> str:
    sid = request.headers.get("X-Session-Id")
    if not sid:
        raise HTTPException(status_code=400, detail="Missing X-Session-Id header.")
    return sid


def log_response(ctx: str, payload) -> None:
    """Pretty-print JSON-able payloads; fall back to str()."""
    try:
        logger.info("%s response: %s", ctx, json.dumps(payload, indent=2, default=str))
    except (TypeError, ValueError):
        logger.info("%s response (non-serializable): %s", ctx, str(payload))


def _table_rows(sid: str, table_name: str) -> Tuple[List[Dict[str, Any]], List[FieldDescriptor]]:
    sess = get_session(sid)
    if table_name not in sess:
        raise HTTPException(status_code=404, detail=f"Table '{table_name}' not found")
    df = sess[table_name]
    kinds = get_session_meta(sid).get(table_name, {}).get("declared_kinds", {})
    fields = [
        FieldDescriptor(name=str(c), declared_kind=kinds.get(str(c)))
        for c in df.columns
    ]
    rows = df_to_records_safe(df)
    return [{str(k): v for k, v in row.items()} for row in rows], fields


def _payload(viz: VisualizationResult, hidden: Set[str]) -> Dict[str, Any]:
    visibility = SeriesVisibility(viz.result.series_keys, hidden)
    return {
        "decision": viz.decision.model_dump(mode="json"),
        "classification": viz.classification.model_dump(mode="json"),
        "result": viz.result.model_dump(mode="json"),
        "render": archetype_renders(viz.decision),
        "hidden_keys": sorted(hidden),
        "visible_keys": visibility.visible_keys,
        "visible_series": visibility.apply(viz.result.series),
    }


def _current(sid: str) -> VisualizationResult:
    viz = get_visualization(sid)
    if viz is None:
        raise HTTPException(status_code=404, detail="No visualization for this session.")
    return viz


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/visualize")
async def visualize_result_set(request: Request, body: VisualizeRequest):
    """
    Decide a chart for a result set and return its renderable series.

    Either `rows` (+ optional `fields`) or `table_name` of an uploaded table.
    Fields default to the keys of the first row.
    """
    sid = require_session_id(request)

    if body.rows is not None:
        rows = body.rows
        fields: Optional[List[FieldDescriptor]] = body.fields
        if fields is None:
            fields = [FieldDescriptor(name=k) for k in (rows[0].keys() if rows else [])]
    elif body.table_name:
        rows, fields = _table_rows(sid, body.table_name)
    else:
        raise HTTPException(status_code=400, detail="Provide either rows or table_name.")

    try:
        viz = visualize(rows, fields)
    except Exception as e:
        logger.exception("Visualization failed")
        raise HTTPException(status_code=500, detail=f"Visualization failed: {e}")

    hidden = save_visualization(sid, viz)
    resp = _payload(viz, hidden)
    log_response("VISUALIZE", {
        "decision": resp["decision"],
        "points": len(resp["result"]["series"]),
        "notices": resp["result"]["notices"],
    })
    return resp


@router.get("/visualize")
async def current_visualization(request: Request):
    sid = require_session_id(request)
    viz = _current(sid)
    return _payload(viz, get_hidden(sid))


@router.post("/series/toggle")
async def toggle_series(request: Request, body: SeriesToggleRequest):
    sid = require_session_id(request)
    viz = _current(sid)
    hidden = get_hidden(sid)
    SeriesVisibility(viz.result.series_keys, hidden).toggle(body.key)
    return _payload(viz, hidden)


@router.post("/series/show-all")
async def show_all_series(request: Request):
    sid = require_session_id(request)
    viz = _current(sid)
    hidden = get_hidden(sid)
    SeriesVisibility(viz.result.series_keys, hidden).show_all()
    return _payload(viz, hidden)


@router.post("/series/hide-all")
async def hide_all_series(request: Request):
    sid = require_session_id(request)
    viz = _current(sid)
    hidden = get_hidden(sid)
    SeriesVisibility(viz.result.series_keys, hidden).hide_all()
    return _payload(viz, hidden)


@router.post("/series/hide-dominant")
async def hide_dominant_series(request: Request):
    sid = require_session_id(request)
    viz = _current(sid)
    hidden = get_hidden(sid)
    if not SeriesVisibility(viz.result.series_keys, hidden).hide_dominant(viz.decision.scale_analysis):
        raise HTTPException(status_code=409, detail="Current chart has no scale analysis.")
    return _payload(viz, hidden)
