"""APIRouter registration for the forms engine."""

from __future__ import annotations

from fastapi import APIRouter

from forms_engine.routes.forms import router as forms_router
from forms_engine.routes.health import router as health_router
from forms_engine.routes.uploads import router as uploads_router

api_router = APIRouter()
# Fixed paths first; the form routes match any "/{slug}/{path}".
api_router.include_router(health_router, tags=["Health"])
api_router.include_router(uploads_router, tags=["Uploads"])
api_router.include_router(forms_router, tags=["Forms"])

__all__ = ["api_router"]
