from __future__ import annotations
from datetime import datetime, timezone

from fastapi import APIRouter, Request

router = APIRouter(tags=["status"])


def _backend(request: Request) -> dict:
    kind = request.app.state.store.kind
    return {"backend": kind, "firebase": kind == "remote"}


@router.get("/")
async def healthz(request: Request):
    return {"success": True, "message": "Server healthy", **_backend(request)}


@router.get("/api/status")
async def api_status(request: Request):
    return {
        "success": True,
        "message": "API is running",
        **_backend(request),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
