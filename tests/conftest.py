"""
Pytest configuration and shared fixtures.

The store runs in-process (FastAPI TestClient over a temp SQLite file) and the
gateway's HTTP function is routed into it, so gateway tests exercise the real
REST surface without a network.
"""

import pytest
import requests
from fastapi.testclient import TestClient

from core.models import Project, ProjectSnapshot
from gateway.client import ProjectGateway
from gateway.settings import EndpointSettings
from server.app import create_app
from storage import db

STORE_URL = "http://store.test/api"


# Store fixtures
@pytest.fixture(scope="function")
def db_path(tmp_path, monkeypatch):
    """Point the store at a fresh database file and create the tables."""
    path = str(tmp_path / "store.db")
    monkeypatch.setattr(db, "DB_PATH", path)
    db.init_db()
    return path


@pytest.fixture(scope="function")
def store_client(db_path):
    """TestClient for the store app."""
    return TestClient(create_app())


# Gateway fixtures
@pytest.fixture(scope="function")
def settings(tmp_path):
    return EndpointSettings(str(tmp_path / "settings.yaml"))


@pytest.fixture(scope="function")
def routed_http(store_client):
    """Stand-in for requests.request that serves STORE_URL from the in-process store."""
    calls = []

    def http(method, url, json=None, timeout=None):
        calls.append((method, url))
        if not url.startswith(STORE_URL):
            raise requests.ConnectionError(f"No route to {url}")
        return store_client.request(method, url[len(STORE_URL):] or "/", json=json)

    http.calls = calls
    return http


@pytest.fixture(scope="function")
def gateway(settings, routed_http):
    """Gateway with STORE_URL saved as its endpoint."""
    settings.set_api_url(STORE_URL)
    return ProjectGateway(settings, http=routed_http)


# Test data fixtures
@pytest.fixture(scope="function")
def make_project():
    def factory(project_id="p1", last_checked=100, **fields):
        values = {
            "id": project_id,
            "url": f"https://{project_id}.example.com",
            "name": f"Project {project_id}",
            "country": "GB",
            "type": "E-COMMERCE",
            "last_checked": last_checked,
        }
        values.update(fields)
        return Project(**values)

    return factory


@pytest.fixture(scope="function")
def make_snapshot():
    def factory(snapshot_id="s1", timestamp=1_000, **fields):
        values = {
            "id": snapshot_id,
            "timestamp": timestamp,
            "score": 72,
            "rank": 4,
            "page": 1,
            "meta_title": "Blue Widgets | Shop",
            "meta_description": "Buy blue widgets online",
            "h1_tag": "Blue Widgets",
            "alt_texts": ["blue widget front", "blue widget side"],
            "top_keywords": ["blue widgets", "widgets uk"],
        }
        values.update(fields)
        return ProjectSnapshot(**values)

    return factory


@pytest.fixture(scope="session")
def store_url():
    return STORE_URL
