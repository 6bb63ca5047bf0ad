from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, Response

from .metrics import CONTENT_TYPE_LATEST, generate_latest
from .search_routes import CONFIG_PATH, SNAPSHOT_PATH, router as search_router, service

APP_VERSION = datetime.now(timezone.utc).strftime("%Y-%m-%d")

app = FastAPI(title="Collection Search", version=APP_VERSION)
app.include_router(search_router)


def _hash_file(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()[:16]


@app.get("/healthz", include_in_schema=False)
def healthz():
    return {
        "status": "ok",
        "snapshot_hash": _hash_file(SNAPSHOT_PATH),
        "config_hash": _hash_file(CONFIG_PATH),
        "items": len(service.snapshot),
        "version": APP_VERSION,
    }


@app.get("/metrics", include_in_schema=False)
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
