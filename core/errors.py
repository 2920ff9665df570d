"""
Error taxonomy shared by the store, the gateway, the controller and the dashboard.
"""


class SuiteError(Exception):
    """Base class for every failure the suite raises on purpose."""


class ConnectivityError(SuiteError):
    """No endpoint configured, or the remote store could not be reached."""


class ConflictError(SuiteError):
    """A record with the same id already exists (snapshots are insert-only)."""


class ValidationError(SuiteError):
    """A payload or a stored column did not match its schema."""


class RenderFault(SuiteError):
    """A view failed while rendering. Raised into the error boundary, never past it."""

    def __init__(self, view: str, cause: BaseException):
        super().__init__(f"{view} view crashed: {cause}")
        self.view = view
        self.cause = cause
