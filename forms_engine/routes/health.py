"""Liveness endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health(request: Request) -> dict:
    registry = getattr(request.app.state, "registry", None)
    return {"status": "ok", "forms_loaded": len(registry) if registry is not None else 0}


__all__ = ["router"]
