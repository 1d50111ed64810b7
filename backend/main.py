from fastapi import FastAPI, UploadFile, File, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from core.models import FieldKind
from core.storage import get_session, get_session_hashes, get_session_meta
from server.api import router as viz_router, log_response, require_session_id
import pandas as pd
import io
from dotenv import load_dotenv
import logging
import hashlib
from datetime import datetime, timezone

logger = logging.getLogger("uvicorn.error")
load_dotenv()
app = FastAPI(title="AI Data Vis", description="Turn result sets into charts")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(viz_router)


def declared_kind(column: pd.Series) -> str:
    """Kind hint for an uploaded column, carried on its FieldDescriptor."""
    dt = column.dtype
    if pd.api.types.is_bool_dtype(dt):
        return FieldKind.text.value
    if pd.api.types.is_numeric_dtype(dt):
        return FieldKind.numeric.value
    if pd.api.types.is_datetime64_any_dtype(dt):
        return FieldKind.date.value
    return FieldKind.text.value


def _table_name(existing, filename: str) -> str:
    base = filename.rsplit(".", 1)[0] or "table"
    name, n = base, 1
    while name in existing:
        n += 1
        name = f"{base}_{n}"
    return name


def _table_meta(filename: str, size: int, df: pd.DataFrame) -> dict:
    columns = [str(c) for c in df.columns]
    return {
        "file_name": filename,
        "file_size": size,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "n_rows": int(len(df)),
        "n_cols": len(columns),
        "columns": columns,
        "declared_kinds": {str(c): declared_kind(df[c]) for c in df.columns},
    }


@app.get("/health")
async def health():
    return {"ok": True}


@app.post("/upload")
async def upload(request: Request, file: UploadFile = File(...)):
    """Store a CSV as a named result set for /api/visualize."""
    sid = require_session_id(request)
    content = await file.read()
    filename = file.filename or "table.csv"

    digest = hashlib.sha256(content).hexdigest()
    hashes = get_session_hashes(sid)
    if digest in hashes:
        resp = {
            "ok": False,
            "duplicate": True,
            "table": hashes[digest],
            "detail": "This result set was already uploaded in this session.",
        }
        log_response("UPLOAD (duplicate)", resp)
        return JSONResponse(status_code=409, content=resp)

    try:
        df = pd.read_csv(io.BytesIO(content))
    except (ValueError, UnicodeDecodeError) as e:
        logger.exception("Failed to parse uploaded result set %s", filename)
        raise HTTPException(status_code=400, detail=f"Failed to read CSV: {e}")

    store = get_session(sid)
    name = _table_name(store, filename)
    store[name] = df
    hashes[digest] = name
    meta = _table_meta(filename, len(content), df)
    get_session_meta(sid)[name] = meta

    resp = {"ok": True, "table": name, "rows": meta["n_rows"], "meta": meta}
    log_response("UPLOAD", resp)
    return resp


@app.get("/tables")
async def tables(request: Request):
    sid = require_session_id(request)
    meta_store = get_session_meta(sid)
    resp = {
        "tables": [
            {"name": name, **meta_store[name]}
            for name in get_session(sid)
        ]
    }
    log_response("TABLES", resp)
    return resp
