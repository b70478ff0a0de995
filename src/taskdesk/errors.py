"""Domain errors raised by the service layer.

Each error carries the HTTP status it maps to. Services never import
FastAPI; the app registers a single handler (main.py) that turns any
TaskDeskError into {"detail": message} with that status.
"""


class TaskDeskError(Exception):
    """Base class for foreseeable, client-facing failures."""

    status_code = 500
    headers: dict[str, str] | None = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaskDeskError):
    """Required input missing or malformed."""

    status_code = 400


class ConflictError(TaskDeskError):
    """A unique field (email) is already taken."""

    status_code = 400


class InvalidCredentialsError(TaskDeskError):
    """Email/password pair did not match a user."""

    status_code = 400

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class UnauthorizedError(TaskDeskError):
    """Missing, malformed or expired bearer token."""

    status_code = 401
    headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(TaskDeskError):
    """Authenticated, but not allowed to touch this resource."""

    status_code = 403


class NotFoundError(TaskDeskError):
    status_code = 404
