"""
Application state controller.

Owns what the dashboard shows: the project list, the active project and the
connectivity status. All I/O goes through the gateway; failures there turn
into offline mode or an ``OperationResult``, never into a crash.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from core.errors import ConflictError, ConnectivityError, SuiteError
from core.models import Project, ProjectSnapshot, sort_history, sort_projects
from gateway.client import ConnectionTestResult, ProjectGateway

logger = logging.getLogger(__name__)

RELOAD_DELAY = 1.0  # seconds between saving a new endpoint and reloading from it


class ConnectivityStatus(str, Enum):
    UNKNOWN = "unknown"
    CONNECTED = "connected"
    OFFLINE = "offline"


@dataclass(frozen=True)
class OperationResult:
    success: bool
    message: str


class AppStateController:
    def __init__(self, gateway: ProjectGateway, reload_delay: float = RELOAD_DELAY):
        self.gateway = gateway
        self.reload_delay = reload_delay

        self.projects: list[Project] = []
        self.active_project_id: Optional[str] = None
        self.connectivity_status = ConnectivityStatus.UNKNOWN
        self.is_initial_loading = True
        self.pending_config_test: Optional[ConnectionTestResult] = None

        self._load_task: Optional[asyncio.Future] = None
        self._reload_task: Optional[asyncio.Future] = None
        self._reload_waiting = False  # deferred reload still in its delay
        self._reload_again = False

    # ── Queries ───────────────────────────────────────────────────────────────

    def find_project(self, project_id: Optional[str]) -> Optional[Project]:
        return next((p for p in self.projects if p.id == project_id), None)

    @property
    def active_project(self) -> Optional[Project]:
        return self.find_project(self.active_project_id)

    @property
    def is_online(self) -> bool:
        return self.connectivity_status == ConnectivityStatus.CONNECTED

    def snapshot(self) -> dict:
        """Plain-dict view of the state, for the JSON API."""
        return {
            "connectivityStatus": self.connectivity_status.value,
            "isInitialLoading": self.is_initial_loading,
            "apiUrl": self.gateway.get_api_url(),
            "activeProjectId": self.active_project.id if self.active_project else None,
            "projects": [p.to_wire() for p in self.projects],
            "pendingConfigTest": (
                {"success": self.pending_config_test.success,
                 "message": self.pending_config_test.message}
                if self.pending_config_test else None
            ),
        }

    # ── Loading ───────────────────────────────────────────────────────────────

    async def initialize(self) -> None:
        """
        Load projects from the store. A load already in flight is awaited
        rather than started a second time.
        """
        if self._load_task is None or self._load_task.done():
            self._load_task = asyncio.ensure_future(self._load())
        await asyncio.shield(self._load_task)

    async def _load(self) -> None:
        try:
            projects = await self.gateway.get_projects()
        except SuiteError as exc:
            logger.warning("Store unavailable, running offline: %s", exc)
            self.projects = []
            self.active_project_id = None
            self.connectivity_status = ConnectivityStatus.OFFLINE
        else:
            self.projects = projects
            self.connectivity_status = (
                ConnectivityStatus.CONNECTED if self.gateway.get_api_url()
                else ConnectivityStatus.OFFLINE
            )
            if self.active_project is None:
                self.active_project_id = projects[0].id if projects else None
            logger.info("Loaded %d project(s) from store", len(projects))
        finally:
            self.is_initial_loading = False

    async def wait_for_reload(self) -> None:
        if self._reload_task is not None:
            await self._reload_task

    # ── Selection & configuration ─────────────────────────────────────────────

    def select_project(self, project_id: str) -> None:
        if self.find_project(project_id) is not None:
            self.active_project_id = project_id

    async def reconfigure_endpoint(self, candidate_url: str) -> ConnectionTestResult:
        """Test `candidate_url`; on success save it and schedule one reload."""
        result = await self.gateway.test_connection(candidate_url)
        self.pending_config_test = result
        if not result.success:
            return result

        self.gateway.set_api_url(candidate_url)
        self.connectivity_status = ConnectivityStatus.CONNECTED

        if self._reload_task is None or self._reload_task.done():
            self._reload_waiting = True
            self._reload_task = asyncio.ensure_future(self._deferred_reload())
        elif self._reload_waiting:
            logger.debug("Reload already scheduled, not queuing another")
        else:
            # Current reload may be reading the previous endpoint
            self._reload_again = True
        return result

    async def _deferred_reload(self) -> None:
        await asyncio.sleep(self.reload_delay)
        self._reload_waiting = False
        while True:
            self._reload_again = False
            # A load already in flight was started before the endpoint changed
            if self._load_task is not None and not self._load_task.done():
                await asyncio.wait([self._load_task])
            logger.info("Reloading projects from %s", self.gateway.get_api_url())
            self._load_task = asyncio.ensure_future(self._load())
            await asyncio.shield(self._load_task)
            if not self._reload_again:
                break

    # ── Mutations ─────────────────────────────────────────────────────────────

    def _failed(self, action: str, exc: SuiteError) -> OperationResult:
        if isinstance(exc, ConnectivityError):
            self.connectivity_status = ConnectivityStatus.OFFLINE
        logger.warning("Could not %s: %s", action, exc)
        return OperationResult(False, str(exc))

    def _replace(self, project: Project) -> None:
        others = [p for p in self.projects if p.id != project.id]
        self.projects = sort_projects(others + [project])

    async def add_project(self, project: Project) -> OperationResult:
        """Create or update a tracked project. Offline, the change stays local."""
        if self.is_online:
            try:
                await self.gateway.create_or_update_project(project)
            except SuiteError as exc:
                return self._failed(f"save project {project.id}", exc)
            message = f"Project {project.name} saved"
        else:
            message = f"Project {project.name} kept locally (offline)"

        existing = self.find_project(project.id)
        history = existing.history if existing else []
        self._replace(project.model_copy(update={"history": history}))
        if self.active_project is None:
            self.active_project_id = project.id
        return OperationResult(True, message)

    async def record_snapshot(self, project_id: str, snapshot: ProjectSnapshot) -> OperationResult:
        project = self.find_project(project_id)
        if project is None:
            return OperationResult(False, f"Unknown project {project_id}")
        if any(s.id == snapshot.id for s in project.history):
            return self._failed(
                f"record snapshot {snapshot.id}",
                ConflictError(f"Snapshot {snapshot.id!r} already exists"),
            )

        if self.is_online:
            try:
                await self.gateway.append_snapshot(project_id, snapshot)
            except SuiteError as exc:
                return self._failed(f"record snapshot {snapshot.id}", exc)

        history = sort_history([snapshot] + project.history)
        self._replace(project.model_copy(update={"history": history}))
        return OperationResult(True, f"Snapshot recorded for {project.name}")

    async def remove_project(self, project_id: str) -> OperationResult:
        if self.is_online:
            try:
                await self.gateway.delete_project(project_id)
            except SuiteError as exc:
                return self._failed(f"delete project {project_id}", exc)

        self.projects = [p for p in self.projects if p.id != project_id]
        if self.active_project_id == project_id:
            self.active_project_id = self.projects[0].id if self.projects else None
        return OperationResult(True, f"Project {project_id} removed")
