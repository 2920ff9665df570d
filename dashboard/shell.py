"""
Page shell: sidebar, header and the boundary-wrapped view area.
"""

import logging
from html import escape
from urllib.parse import quote

from analysis.source import ReportSource
from controller.state import AppStateController
from dashboard.boundary import ErrorBoundary
from dashboard.router import NAVIGATION, ToolMode, ViewRouter, mode_title
from dashboard.views import ViewContext

logger = logging.getLogger(__name__)

_STYLE = """
body { margin: 0; display: flex; font-family: system-ui, sans-serif; color: #0f172a; }
aside { width: 18rem; min-height: 100vh; background: #0f172a; color: #fff; padding: 1.5rem; }
aside a { display: block; color: #94a3b8; padding: .5rem 0; text-decoration: none; }
aside a.active { color: #f97316; font-weight: bold; }
main { flex: 1; background: #f8fafc; }
header { display: flex; justify-content: space-between; padding: 1.5rem 2.5rem; background: #fff; }
#view { padding: 2.5rem; }
.status-connected { color: #34d399; } .status-offline, .status-unknown { color: #fb923c; }
.recovery { border: 1px solid #ef4444; padding: 2rem; text-align: center; }
.muted { color: #64748b; }
"""

_SETTINGS_SCRIPT = """
async function saveEndpoint(event) {
  event.preventDefault();
  const url = document.getElementById('api-url').value;
  const resp = await fetch('/api/endpoint', {
    method: 'POST', headers: {'Content-Type': 'application/json'}, body: JSON.stringify({url})
  });
  const result = await resp.json();
  document.getElementById('test-status').textContent = result.message;
  if (result.success) setTimeout(() => window.location.reload(), 1500);
}
"""


class DashboardShell:
    def __init__(self, controller: AppStateController, router: ViewRouter, reports: ReportSource):
        self.controller = controller
        self.router = router
        self.reports = reports
        self.boundaries: dict[ToolMode, ErrorBoundary] = {}

    def boundary_for(self, mode: ToolMode) -> ErrorBoundary:
        """Boundary for `mode`, created on first render. Modes fault independently."""
        if mode not in self.boundaries:
            self.boundaries[mode] = ErrorBoundary()
        return self.boundaries[mode]

    def remount(self) -> None:
        """Fresh boundaries for the view area; the only way out of a faulted state."""
        for mode, boundary in self.boundaries.items():
            if boundary.faulted:
                logger.info("Remounting %s view after %s", mode.value, boundary.fault)
        self.boundaries = {}

    # ── Pieces ────────────────────────────────────────────────────────────────

    def _sidebar(self, mode: ToolMode) -> str:
        c = self.controller
        links = "".join(
            f"<a href=\"/?mode={m.value}\" class=\"{'active' if m == mode else ''}\">{escape(title)}</a>"
            for m, title in NAVIGATION
        )
        status = c.connectivity_status.value
        label = "Cloud Active" if c.is_online else "Offline"
        if c.projects:
            projects = "".join(
                f"<a href=\"/select/{quote(p.id, safe='')}?mode={mode.value}\" "
                f"class=\"{'active' if p.id == c.active_project_id else ''}\">{escape(p.name)}</a>"
                for p in c.projects
            )
        else:
            projects = "<p class=\"muted\">No Projects</p>"
        last_test = c.pending_config_test.message if c.pending_config_test else ""
        return f"""
        <aside id="sidebar">
          <h1>SEOPro<span style="color:#f97316">Suite</span></h1>
          <nav>{links}</nav>
          <div id="sync">
            <p>Sync Engine</p>
            <p class="status-{status}">{label}</p>
            <div id="projects">{projects}</div>
            <form id="settings" onsubmit="saveEndpoint(event)">
              <input id="api-url" type="url" placeholder="https://example.com/api.php"
                     value="{escape(c.gateway.get_api_url())}">
              <button type="submit">Test &amp; Save</button>
              <p id="test-status">{escape(last_test)}</p>
            </form>
          </div>
        </aside>"""

    def _header(self, mode: ToolMode) -> str:
        project = self.controller.active_project
        tracked = ""
        if project is not None:
            tracked = (
                f"<div><small>TRACKED DOMAIN</small><p>{escape(project.url)}</p></div>"
                f"<div class=\"avatar\">{escape(project.name[:1].upper())}</div>"
            )
        return f"<header id=\"header\"><h1>{escape(mode_title(mode))}</h1>{tracked}</header>"

    def _page(self, body: str) -> str:
        return (
            "<!DOCTYPE html><html><head><meta charset=\"utf-8\"><title>SEOPro Suite</title>"
            f"<style>{_STYLE}</style><script>{_SETTINGS_SCRIPT}</script></head>"
            f"<body>{body}</body></html>"
        )

    # ── Render ────────────────────────────────────────────────────────────────

    def render(self, mode: ToolMode) -> str:
        if self.controller.is_initial_loading:
            return self._page(
                "<main id=\"loading\"><h2>SEO Engine Initializing...</h2>"
                "<script>setTimeout(() => window.location.reload(), 1000)</script></main>"
            )

        ctx = ViewContext(project=self.controller.active_project, reports=self.reports)
        view = self.boundary_for(mode).render(mode.value, self.router.resolve(mode), ctx)
        return self._page(
            f"{self._sidebar(mode)}"
            f"<main>{self._header(mode)}<section id=\"view\">{view}</section></main>"
        )
