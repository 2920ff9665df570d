"""
Test doubles shared across test modules.
"""

import asyncio

from core.errors import ConnectivityError
from core.models import sort_projects
from gateway.client import ConnectionTestResult


class FakeGateway:
    """
    In-memory gateway double that records calls.

    `by_url` serves a different project list per endpoint, `dead_urls` fail
    like an unreachable host, and `delay` slows every listing call down.
    """

    def __init__(self, projects=None, api_url="http://store.test", reachable=True,
                 by_url=None, dead_urls=(), delay=0):
        self.projects = list(projects or [])
        self.api_url = api_url
        self.reachable = reachable
        self.by_url = dict(by_url or {})
        self.dead_urls = set(dead_urls)
        self.delay = delay
        self.get_calls = 0
        self.saved = []
        self.snapshots = []
        self.deleted = []
        self.fail_next = None

    def get_api_url(self):
        return self.api_url

    def set_api_url(self, url):
        self.api_url = url

    def _reachable(self, url):
        return self.reachable and url not in self.dead_urls

    async def test_connection(self, url):
        await asyncio.sleep(0)
        if self._reachable(url):
            return ConnectionTestResult(True, "Connected: 0 project(s) found")
        return ConnectionTestResult(False, f"Could not reach {url}")

    async def get_projects(self):
        self.get_calls += 1
        # the endpoint is read when the request goes out, not when it returns
        url = self.api_url
        await asyncio.sleep(self.delay)
        if not url:
            raise ConnectivityError("No API endpoint configured")
        if not self._reachable(url):
            raise ConnectivityError(f"Could not reach {url}")
        return sort_projects(self.by_url.get(url, self.projects))

    def _maybe_fail(self):
        if self.fail_next is not None:
            exc, self.fail_next = self.fail_next, None
            raise exc

    async def create_or_update_project(self, project):
        self._maybe_fail()
        self.saved.append(project)

    async def append_snapshot(self, project_id, snapshot):
        self._maybe_fail()
        self.snapshots.append((project_id, snapshot))

    async def delete_project(self, project_id):
        self._maybe_fail()
        self.deleted.append(project_id)
