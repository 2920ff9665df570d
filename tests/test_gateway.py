"""
Persistence gateway against the in-process store.
"""

import asyncio
import time

import pytest
import requests
from urllib3.exceptions import LocationParseError

from core.errors import ConflictError, ConnectivityError, ValidationError
from gateway.client import ProjectGateway
from gateway.settings import EndpointSettings


def run(coro):
    return asyncio.run(coro)


class _Resp:
    def __init__(self, status_code, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class TestEndpointSettings:

    def test_unset_is_empty(self, settings):
        assert settings.get_api_url() == ""

    def test_persists_across_instances(self, settings):
        settings.set_api_url("https://store.example.com/api.php")
        assert EndpointSettings(str(settings.path)).get_api_url() == "https://store.example.com/api.php"

    def test_gateway_normalises_trailing_slash(self, settings):
        gw = ProjectGateway(settings)
        gw.set_api_url("https://store.example.com/api.php/ ")
        assert gw.get_api_url() == "https://store.example.com/api.php"


class TestProjects:

    def test_no_endpoint_raises_connectivity(self, settings):
        gw = ProjectGateway(settings)
        with pytest.raises(ConnectivityError):
            run(gw.get_projects())

    def test_create_and_list(self, gateway, make_project, make_snapshot):
        async def scenario():
            await gateway.create_or_update_project(make_project("p1", last_checked=200))
            await gateway.create_or_update_project(make_project("p2", last_checked=100))
            await gateway.append_snapshot("p1", make_snapshot("s1", 1_000))
            return await gateway.get_projects()

        projects = run(scenario())

        assert [p.id for p in projects] == ["p1", "p2"]
        assert projects[0].history[0].top_keywords == ["blue widgets", "widgets uk"]

    def test_history_strictly_descending(self, gateway, make_project, make_snapshot):
        async def scenario():
            await gateway.create_or_update_project(make_project("p1"))
            for sid, ts in [("a", 5_000), ("b", 1_000), ("c", 9_000), ("d", 3_000)]:
                await gateway.append_snapshot("p1", make_snapshot(sid, ts))
            return await gateway.get_projects()

        history = run(scenario())[0].history
        stamps = [s.timestamp for s in history]
        assert all(a > b for a, b in zip(stamps, stamps[1:]))

    def test_upsert_idempotent(self, gateway, make_project):
        async def scenario():
            await gateway.create_or_update_project(make_project("p1", name="Before"))
            await gateway.create_or_update_project(make_project("p1", name="After"))
            return await gateway.get_projects()

        projects = run(scenario())
        assert len(projects) == 1
        assert projects[0].name == "After"

    def test_duplicate_snapshot_conflicts(self, gateway, make_project, make_snapshot):
        async def setup():
            await gateway.create_or_update_project(make_project("p1"))
            await gateway.append_snapshot("p1", make_snapshot("s1"))

        run(setup())
        with pytest.raises(ConflictError):
            run(gateway.append_snapshot("p1", make_snapshot("s1", 2_000)))

        assert len(run(gateway.get_projects())[0].history) == 1

    def test_snapshot_for_unknown_project(self, gateway, make_snapshot):
        with pytest.raises(ValidationError):
            run(gateway.append_snapshot("ghost", make_snapshot("s1")))

    def test_delete_removes_project_and_snapshots(self, gateway, make_project, make_snapshot):
        async def scenario():
            await gateway.create_or_update_project(make_project("p1", last_checked=200))
            await gateway.create_or_update_project(make_project("p2", last_checked=100))
            await gateway.append_snapshot("p1", make_snapshot("s1"))
            await gateway.delete_project("p1")
            return await gateway.get_projects()

        projects = run(scenario())
        assert [p.id for p in projects] == ["p2"]

    def test_server_error_is_connectivity(self, settings, store_url):
        settings.set_api_url(store_url)
        gw = ProjectGateway(settings, http=lambda *a, **kw: _Resp(500, {"error": "boom"}))
        with pytest.raises(ConnectivityError, match="boom"):
            run(gw.get_projects())

    def test_malformed_payload_is_validation(self, settings, store_url):
        settings.set_api_url(store_url)
        body = [{"id": "p1", "url": "u", "name": "n", "type": "SPACESHIP"}]
        gw = ProjectGateway(settings, http=lambda *a, **kw: _Resp(200, body))
        with pytest.raises(ValidationError):
            run(gw.get_projects())

    def test_transport_error_is_connectivity(self, settings, store_url):
        settings.set_api_url(store_url)

        def refuse(*args, **kwargs):
            raise requests.ConnectionError("refused")

        gw = ProjectGateway(settings, http=refuse)
        with pytest.raises(ConnectivityError):
            run(gw.delete_project("p1"))


class TestConnection:

    def test_success_does_not_save(self, settings, routed_http, store_url):
        gw = ProjectGateway(settings, http=routed_http)

        result = run(gw.test_connection(store_url))

        assert result.success is True
        assert "0 project(s)" in result.message
        assert gw.get_api_url() == ""

    def test_unroutable_url(self, settings, routed_http):
        gw = ProjectGateway(settings, http=routed_http)
        result = run(gw.test_connection("http://elsewhere.test"))
        assert result.success is False
        assert result.message

    def test_blank_url(self, settings):
        result = run(ProjectGateway(settings).test_connection("  "))
        assert result.success is False

    def test_non_list_body(self, settings):
        gw = ProjectGateway(settings, http=lambda *a, **kw: _Resp(200, {"status": "ok"}))
        assert run(gw.test_connection("http://store.test")).success is False

    def test_non_json_body(self, settings):
        gw = ProjectGateway(settings, http=lambda *a, **kw: _Resp(200, None, "<html>"))
        assert run(gw.test_connection("http://store.test")).success is False

    def test_unreachable_real_socket_is_bounded(self, settings):
        # Port 9 (discard) is closed on any sane test host: connection refused
        gw = ProjectGateway(settings, test_timeout=2.0)
        started = time.monotonic()

        result = run(gw.test_connection("http://127.0.0.1:9"))

        assert result.success is False
        assert time.monotonic() - started < 10


MALFORMED_HOSTS = [
    "http://" + "a" * 70 + ".com",
    "http://:80",
    "http://.example.com",
]


class TestMalformedEndpoint:

    @pytest.mark.parametrize("url", MALFORMED_HOSTS)
    def test_connection_reports_failure(self, settings, url):
        result = run(ProjectGateway(settings, test_timeout=2.0).test_connection(url))
        assert result.success is False
        assert result.message

    @pytest.mark.parametrize("url", MALFORMED_HOSTS)
    def test_listing_raises_connectivity(self, settings, url):
        settings.set_api_url(url)
        with pytest.raises(ConnectivityError):
            run(ProjectGateway(settings, timeout=2.0).get_projects())

    def test_parse_error_from_transport_is_connectivity(self, settings, store_url):
        settings.set_api_url(store_url)

        def unparseable(*args, **kwargs):
            raise LocationParseError("a..example.com")

        gw = ProjectGateway(settings, http=unparseable)
        with pytest.raises(ConnectivityError):
            run(gw.get_projects())
