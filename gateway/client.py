"""
Persistence gateway: project/snapshot operations against the remote store.

Blocking HTTP (requests) runs in the event loop's default executor so callers
just ``await``. Every failure leaves this module as one of the typed errors in
``core.errors``; transport and decoding exceptions never leak.
"""

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional
from urllib.parse import quote

import requests
from pydantic import ValidationError as SchemaError
from urllib3.exceptions import LocationParseError

from core.errors import ConflictError, ConnectivityError, SuiteError, ValidationError
from core.models import Project, ProjectSnapshot, SnapshotCreate, sort_history, sort_projects
from gateway.settings import EndpointSettings

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10.0
TEST_TIMEOUT = 5.0


@dataclass(frozen=True)
class ConnectionTestResult:
    success: bool
    message: str


def _normalise(url: str) -> str:
    return (url or "").strip().rstrip("/")


def _error_message(resp) -> str:
    """Pull ``{"error": ...}`` out of a store response, falling back to the raw text."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return (resp.text or "").strip()[:200] or f"HTTP {resp.status_code}"


class ProjectGateway:
    """
    Thin async client over the store's REST surface.

    `http` is the request function (same signature as ``requests.request``);
    it is injectable so the gateway can be pointed at an in-process app.
    """

    def __init__(
        self,
        settings: EndpointSettings,
        timeout: float = REQUEST_TIMEOUT,
        test_timeout: float = TEST_TIMEOUT,
        http: Callable[..., Any] = requests.request,
    ):
        self.settings = settings
        self.timeout = timeout
        self.test_timeout = test_timeout
        self._http = http

    # ── Endpoint configuration ────────────────────────────────────────────────

    def get_api_url(self) -> str:
        return _normalise(self.settings.get_api_url())

    def set_api_url(self, url: str) -> None:
        self.settings.set_api_url(_normalise(url))

    # ── Transport ─────────────────────────────────────────────────────────────

    async def _send(
        self,
        method: str,
        path: str,
        payload: Optional[dict] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        base = _normalise(base_url) if base_url is not None else self.get_api_url()
        if not base:
            raise ConnectivityError("No API endpoint configured")

        call = functools.partial(
            self._http, method, f"{base}{path}", json=payload, timeout=timeout or self.timeout
        )
        loop = asyncio.get_running_loop()
        try:
            resp = await loop.run_in_executor(None, call)
        except requests.Timeout as exc:
            raise ConnectivityError(f"Timed out reaching {base}") from exc
        except (requests.RequestException, LocationParseError) as exc:
            raise ConnectivityError(f"Could not reach {base}: {exc}") from exc

        status = resp.status_code
        if 200 <= status < 300:
            return resp
        message = _error_message(resp)
        logger.debug("%s %s -> %d: %s", method, path, status, message)
        if status == 409:
            raise ConflictError(message)
        if status in (400, 422):
            raise ValidationError(message)
        raise ConnectivityError(f"Store returned HTTP {status}: {message}")

    @staticmethod
    def _json(resp) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise ValidationError("Store response is not valid JSON") from exc

    # ── Operations ────────────────────────────────────────────────────────────

    async def test_connection(self, url: str) -> ConnectionTestResult:
        """
        Round-trip a listing call against `url` without touching saved settings.
        Never raises.
        """
        candidate = _normalise(url)
        if not candidate:
            return ConnectionTestResult(False, "No endpoint provided")
        try:
            resp = await self._send("GET", "/projects", base_url=candidate, timeout=self.test_timeout)
            body = self._json(resp)
        except SuiteError as exc:
            logger.warning("Connection test against %s failed: %s", candidate, exc)
            return ConnectionTestResult(False, str(exc))
        if not isinstance(body, list):
            return ConnectionTestResult(False, "Endpoint did not return a project list")
        logger.info("Connection test against %s succeeded (%d projects)", candidate, len(body))
        return ConnectionTestResult(True, f"Connected: {len(body)} project(s) found")

    async def get_projects(self) -> list[Project]:
        """
        Every project with its full history.

        Raises ConnectivityError when no endpoint is set or the store is
        unreachable, ValidationError when the payload does not decode.
        """
        body = self._json(await self._send("GET", "/projects"))
        if not isinstance(body, list):
            raise ValidationError("Expected a list of projects")
        try:
            projects = [Project.model_validate(item) for item in body]
        except SchemaError as exc:
            raise ValidationError(f"Malformed project payload: {exc.errors()[0]['msg']}") from exc

        return sort_projects(
            [p.model_copy(update={"history": sort_history(p.history)}) for p in projects]
        )

    async def create_or_update_project(self, project: Project) -> None:
        await self._send("POST", "/projects", project.upsert_body().to_wire())
        logger.info("Project %s saved to store", project.id)

    async def append_snapshot(self, project_id: str, snapshot: ProjectSnapshot) -> None:
        body = SnapshotCreate.for_project(project_id, snapshot).to_wire()
        await self._send("POST", "/snapshots", body)
        logger.info("Snapshot %s appended to project %s", snapshot.id, project_id)

    async def delete_project(self, project_id: str) -> None:
        await self._send("DELETE", f"/projects/{quote(project_id, safe='')}")
        logger.info("Project %s deleted from store", project_id)
