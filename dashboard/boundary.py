"""
Error boundary around the view area.

A view that raises while rendering is replaced by a recovery panel; the
sidebar and header are rendered outside and are not affected. Once faulted,
the boundary stays faulted until the page is remounted (``POST /reload``).
"""

import logging
from enum import Enum
from html import escape
from typing import Callable, Optional

from core.errors import RenderFault

logger = logging.getLogger(__name__)


class BoundaryState(str, Enum):
    HEALTHY = "healthy"
    FAULTED = "faulted"


class ErrorBoundary:
    def __init__(self):
        self.state = BoundaryState.HEALTHY
        self.fault: Optional[RenderFault] = None

    @property
    def faulted(self) -> bool:
        return self.state == BoundaryState.FAULTED

    def render(self, view_name: str, view: Callable[..., str], *args) -> str:
        if self.faulted:
            return self.recovery()
        try:
            return view(*args)
        except Exception as exc:
            self.fault = RenderFault(view_name, exc)
            self.state = BoundaryState.FAULTED
            logger.error("Boundary caught error in %s view", view_name, exc_info=exc)
            return self.recovery()

    def recovery(self) -> str:
        message = escape(str(self.fault.cause)) if self.fault else "Unknown error"
        return f"""
        <div class="recovery" id="recovery">
          <h2>Component Crash</h2>
          <p>{message}</p>
          <form method="post" action="/reload">
            <button type="submit">Reload Page</button>
          </form>
        </div>"""
