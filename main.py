"""
main.py: CLI entry point for SEOPro Suite.

Usage:
  python main.py --serve-store              Run the project/snapshot REST store
  python main.py --serve-dashboard          Run the dashboard UI
  python main.py --init-db                  Initialise the store database only
  python main.py --list-projects            Print projects from the configured store
  python main.py --test-connection URL      Check a store endpoint without saving it
  python main.py --set-endpoint URL         Test an endpoint and save it on success
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

load_dotenv()

# ── Logging setup ─────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler("seopro.log", encoding="utf-8"),
    ],
)
logger = logging.getLogger("main")


# ── Config loader ─────────────────────────────────────────────────────────────

DEFAULTS = {
    "store": {"db_path": "seopro.db", "host": "127.0.0.1", "port": 8000},
    "dashboard": {
        "host": "127.0.0.1",
        "port": 8080,
        "settings_path": None,
        "reports_dir": "reports",
        "reload_delay_seconds": 1.0,
        "request_timeout_seconds": 10.0,
        "test_timeout_seconds": 5.0,
    },
}


def load_config(path: str = "config.yaml") -> dict:
    """Read config.yaml over the defaults. A missing file means defaults only."""
    config = {section: dict(values) for section, values in DEFAULTS.items()}
    if Path(path).exists():
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        for section, values in loaded.items():
            config.setdefault(section, {}).update(values or {})
    else:
        logger.info("%s not found, using defaults", path)

    if os.getenv("DB_PATH"):
        config["store"]["db_path"] = os.environ["DB_PATH"]
    if os.getenv("SEOPRO_SETTINGS_PATH"):
        config["dashboard"]["settings_path"] = os.environ["SEOPRO_SETTINGS_PATH"]
    return config


# ── Wiring ────────────────────────────────────────────────────────────────────

def build_gateway(config: dict):
    from gateway.client import ProjectGateway
    from gateway.settings import EndpointSettings

    dash = config["dashboard"]
    return ProjectGateway(
        EndpointSettings(dash.get("settings_path")),
        timeout=dash["request_timeout_seconds"],
        test_timeout=dash["test_timeout_seconds"],
    )


def build_dashboard(config: dict):
    from analysis.source import ReportSource
    from controller.state import AppStateController
    from dashboard.router import ViewRouter
    from dashboard.shell import DashboardShell
    from dashboard.views import register_default_views
    from dashboard.web import create_dashboard_app

    dash = config["dashboard"]
    controller = AppStateController(
        build_gateway(config), reload_delay=dash["reload_delay_seconds"]
    )
    shell = DashboardShell(
        controller,
        register_default_views(ViewRouter()),
        ReportSource(dash["reports_dir"]),
    )
    return create_dashboard_app(shell)


def serve_store(config: dict) -> None:
    import uvicorn
    from server.app import create_app
    from storage.db import set_db_path

    store = config["store"]
    set_db_path(store["db_path"])
    logger.info("=== Starting store on %s:%s ===", store["host"], store["port"])
    uvicorn.run(create_app(), host=store["host"], port=int(store["port"]))


def serve_dashboard(config: dict) -> None:
    import uvicorn

    dash = config["dashboard"]
    logger.info("=== Starting dashboard on %s:%s ===", dash["host"], dash["port"])
    uvicorn.run(build_dashboard(config), host=dash["host"], port=int(dash["port"]))


async def _list_projects(config: dict) -> int:
    from core.errors import SuiteError

    gateway = build_gateway(config)
    try:
        projects = await gateway.get_projects()
    except SuiteError as exc:
        logger.error("Could not list projects: %s", exc)
        return 1

    for p in projects:
        latest = p.latest_snapshot()
        print(f"\n{'='*60}")
        print(f"  {p.name}  [{p.type.value}]  {p.url}")
        print(f"  Country:        {p.country or '-'}")
        print(f"  Snapshots:      {len(p.history)}")
        if latest:
            print(f"  Latest:         score {latest.score}/100, rank #{latest.rank} (page {latest.page})")
    print()
    return 0


async def _test_connection(config: dict, url: str, save: bool) -> int:
    gateway = build_gateway(config)
    result = await gateway.test_connection(url)
    print(result.message)
    if not result.success:
        return 1
    if save:
        gateway.set_api_url(url)
    return 0


# ── CLI ───────────────────────────────────────────────────────────────────────

def main():
    parser = argparse.ArgumentParser(
        description="SEOPro Suite: SEO project tracking dashboard and store"
    )
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--serve-store",
        action="store_true",
        help="Run the project/snapshot REST store",
    )
    group.add_argument(
        "--serve-dashboard",
        action="store_true",
        help="Run the dashboard web UI",
    )
    group.add_argument(
        "--init-db",
        action="store_true",
        help="Initialise the store database only",
    )
    group.add_argument(
        "--list-projects",
        action="store_true",
        help="Print all projects from the configured store endpoint",
    )
    group.add_argument(
        "--test-connection",
        metavar="URL",
        help="Check a store endpoint without saving it",
    )
    group.add_argument(
        "--set-endpoint",
        metavar="URL",
        help="Test a store endpoint and save it if reachable",
    )

    args = parser.parse_args()
    config = load_config(args.config)

    if args.serve_store:
        serve_store(config)

    elif args.serve_dashboard:
        serve_dashboard(config)

    elif args.init_db:
        from storage.db import init_db, set_db_path
        set_db_path(config["store"]["db_path"])
        init_db()

    elif args.list_projects:
        sys.exit(asyncio.run(_list_projects(config)))

    elif args.test_connection:
        sys.exit(asyncio.run(_test_connection(config, args.test_connection, save=False)))

    elif args.set_endpoint:
        sys.exit(asyncio.run(_test_connection(config, args.set_endpoint, save=True)))


if __name__ == "__main__":
    main()
