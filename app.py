"""HTTP host for the page math engine using FastAPI."""
from __future__ import annotations

from typing import Any, Optional

from bs4 import BeautifulSoup
from fastapi import FastAPI
from pydantic import BaseModel

from core.config import settings
from core.logger import init_logging, logger
from services.engine import MathEngine
from services.render.latex_renderer import LatexRenderer
from services.render.pipeline import RendererState
from utils.domain_guard import is_domain_allowed


class RenderRequest(BaseModel):
    html: str
    url: Optional[str] = None


class RestoreRequest(BaseModel):
    html: str


def create_app() -> FastAPI:
    """Create FastAPI app with health, render, restore and stats routes."""
    app = FastAPI(title="PageMath", version="0.1.0")

    renderer = LatexRenderer()
    totals = RendererState()

    @app.on_event("startup")
    async def startup_event() -> None:
        init_logging()
        logger.info("FastAPI service started")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/render")
    async def render(request: RenderRequest) -> dict[str, Any]:
        """Render every math span of an HTML document."""
        if request.url and not is_domain_allowed(request.url, settings.allowed_domains):
            return {"html": request.html, "stats": RendererState().as_dict(), "diagnostics": [], "enabled": False}

        soup = BeautifulSoup(request.html, "html.parser")
        engine = MathEngine(renderer=renderer)
        engine.render(soup)

        stats = engine.stats()
        totals.total_attempts += stats["total_attempts"]
        totals.strict_successes += stats["strict_successes"]
        totals.fallback_successes += stats["fallback_successes"]
        return {
            "html": str(soup),
            "stats": stats,
            "diagnostics": [record.as_dict() for record in engine.diagnostics],
            "enabled": True,
        }

    @app.post("/restore")
    async def restore(request: RestoreRequest) -> dict[str, Any]:
        """Put the original text back for every rendered container."""
        soup = BeautifulSoup(request.html, "html.parser")
        restored = MathEngine(renderer=renderer).restore(soup)
        return {"html": str(soup), "restored": restored}

    @app.get("/stats")
    async def stats() -> dict[str, int]:
        return totals.as_dict()

    return app
