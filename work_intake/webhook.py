"""HTTP intake webhook (email forwarders, iOS Shortcuts, dictation apps)."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import Literal, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from .config import Settings
from .orchestrator import TaskOrchestrator, select_backend

logger = logging.getLogger(__name__)

# HTTP status for each failure kind reported by the orchestrator
ERROR_STATUS = {
    "validation": 400,
    "configuration": 503,
    "api": 502,
    "unexpected": 500,
}


class IntakeRequest(BaseModel):
    text: str = ""
    platform: Optional[Literal["asana", "planner"]] = None
    source: Optional[str] = None
    assignee: Optional[str] = None


def create_app(
    settings: Settings | None = None,
    orchestrator: TaskOrchestrator | None = None,
) -> FastAPI:
    """Build the intake app around one orchestrator."""
    settings = settings or Settings.from_env()
    orchestrator = orchestrator or TaskOrchestrator(settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        logger.info(
            "Asana configured: %s | Planner configured: %s",
            settings.asana_configured,
            settings.planner_configured,
        )
        yield
        await orchestrator.aclose()

    app = FastAPI(title="work-intake", lifespan=lifespan)
    app.state.settings = settings
    app.state.orchestrator = orchestrator

    @app.exception_handler(RequestValidationError)
    async def bad_request(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": f"Invalid request body: {_describe_errors(exc.errors())}",
            },
        )

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "work-intake webhook is running."

    @app.get("/health")
    async def health() -> dict:
        return {
            "ok": True,
            "python": sys.version.split()[0],
            "asanaConfigured": settings.asana_configured,
            "plannerConfigured": settings.planner_configured,
            "defaultBackend": select_backend(settings),
        }

    @app.post("/intake")
    async def intake(body: IntakeRequest) -> JSONResponse:
        if not body.text.strip():
            return JSONResponse(
                status_code=400,
                content={"success": False, "error": 'Missing required "text" in request body.'},
            )

        source = body.source or "webhook"
        logger.info("Intake from %s (%d chars)", source, len(body.text))
        result = await orchestrator.handle(
            body.text, platform=body.platform, assignee=body.assignee
        )

        content = {**result.to_dict(), "source": source}
        status = 200 if result.success else ERROR_STATUS.get(result.error_kind or "", 500)
        return JSONResponse(status_code=status, content=content)

    return app


def _describe_errors(errors) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)
