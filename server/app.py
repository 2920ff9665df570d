"""
Project/snapshot store exposed over REST.

    GET    /projects          all projects with history
    POST   /projects          upsert a project by id
    POST   /snapshots         append a snapshot (insert only)
    DELETE /projects/{id}     delete a project and its snapshots
    GET    /health            liveness

Errors come back as ``{"error": message}`` with a non-2xx status.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware

from core.errors import ConflictError, ValidationError
from core.models import ProjectUpsert, SnapshotCreate
from storage import projects as store
from storage.db import init_db

logger = logging.getLogger(__name__)

middleware = [
    Middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )
]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def create_app() -> FastAPI:
    """Build the store app. Tables are created on the configured DB_PATH first."""
    init_db()
    app = FastAPI(title="SEOPro store", middleware=middleware)

    @app.exception_handler(ConflictError)
    async def on_conflict(request: Request, exc: ConflictError):
        return _error(409, str(exc))

    @app.exception_handler(ValidationError)
    async def on_invalid(request: Request, exc: ValidationError):
        return _error(422, str(exc))

    @app.exception_handler(RequestValidationError)
    async def on_bad_body(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        return _error(422, f"Invalid payload: {where} {first.get('msg', '')}".strip())

    @app.exception_handler(Exception)
    async def on_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "Internal store error")

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/projects")
    def get_projects():
        return [p.to_wire() for p in store.list_projects()]

    @app.post("/projects")
    def post_project(project: ProjectUpsert):
        store.upsert_project(project)
        return {"status": "success"}

    @app.post("/snapshots")
    def post_snapshot(snapshot: SnapshotCreate):
        store.insert_snapshot(snapshot)
        return {"status": "success"}

    @app.delete("/projects/{project_id}")
    def remove_project(project_id: str):
        store.delete_project(project_id)
        return {"status": "deleted"}

    return app
