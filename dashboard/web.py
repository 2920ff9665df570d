"""
Dashboard web app: the HTML shell plus a small JSON API over the state controller.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from pydantic import BaseModel

from controller.state import AppStateController, OperationResult
from core.models import Project, ProjectSnapshot
from dashboard.router import parse_mode
from dashboard.shell import DashboardShell

logger = logging.getLogger(__name__)


class EndpointRequest(BaseModel):
    url: str


def _outcome(result: OperationResult) -> JSONResponse:
    return JSONResponse(
        {"success": result.success, "message": result.message},
        status_code=200 if result.success else 400,
    )


def create_dashboard_app(shell: DashboardShell) -> FastAPI:
    controller: AppStateController = shell.controller

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # First mount: load in the background so the loading screen can be served
        app.state.initial_load = asyncio.ensure_future(controller.initialize())
        yield
        # Both are bounded by the gateway timeouts
        await app.state.initial_load
        await controller.wait_for_reload()

    app = FastAPI(title="SEOPro dashboard", lifespan=lifespan)

    # ── Pages ─────────────────────────────────────────────────────────────────

    @app.get("/", response_class=HTMLResponse)
    async def index(mode: Optional[str] = None):
        return HTMLResponse(shell.render(parse_mode(mode)))

    @app.get("/select/{project_id:path}")
    async def select(project_id: str, mode: Optional[str] = None):
        controller.select_project(project_id)
        return RedirectResponse(f"/?mode={parse_mode(mode).value}", status_code=303)

    @app.post("/reload")
    async def reload():
        shell.remount()
        return RedirectResponse("/", status_code=303)

    # ── JSON API ──────────────────────────────────────────────────────────────

    @app.get("/api/state")
    async def state():
        return controller.snapshot()

    @app.post("/api/refresh")
    async def refresh():
        await controller.initialize()
        return controller.snapshot()

    @app.post("/api/endpoint")
    async def endpoint(body: EndpointRequest):
        result = await controller.reconfigure_endpoint(body.url)
        return {"success": result.success, "message": result.message}

    @app.post("/api/projects")
    async def add_project(project: Project):
        return _outcome(await controller.add_project(project))

    @app.delete("/api/projects/{project_id}")
    async def remove_project(project_id: str):
        return _outcome(await controller.remove_project(project_id))

    @app.post("/api/projects/{project_id}/snapshots")
    async def record_snapshot(project_id: str, snapshot: ProjectSnapshot):
        return _outcome(await controller.record_snapshot(project_id, snapshot))

    return app
