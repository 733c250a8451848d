"""Exception hierarchy for the Atlassian CLI."""

from __future__ import annotations


class AtlassianCLIError(Exception):
    """Base exception for everything the CLI reports to the user."""


class ConfigError(AtlassianCLIError):
    """Raised when credentials or the config file are missing or invalid."""


class AtlassianAPIError(AtlassianCLIError):
    """Raised when a REST API answers with an error status."""

    def __init__(self, message: str, status_code: int | None = None, service: str = "Jira"):
        self.status_code = status_code
        self.service = service
        super().__init__(message)


class ValidationError(AtlassianAPIError):
    """Raised when the request payload is invalid (400)."""

    def __init__(self, message: str = "Validation error.", service: str = "Jira"):
        super().__init__(message, status_code=400, service=service)


class AuthenticationError(AtlassianAPIError):
    """Raised when authentication fails (401)."""

    def __init__(
        self,
        message: str = "Authentication failed. Check your email and API token.",
        service: str = "Jira",
    ):
        super().__init__(message, status_code=401, service=service)


class PermissionDeniedError(AtlassianAPIError):
    """Raised when the user lacks permissions (403)."""

    def __init__(self, message: str = "Permission denied.", service: str = "Jira"):
        super().__init__(message, status_code=403, service=service)


class NotFoundError(AtlassianAPIError):
    """Raised when a resource is not found (404)."""

    def __init__(self, message: str = "Resource not found.", service: str = "Jira"):
        super().__init__(message, status_code=404, service=service)


class RateLimitError(AtlassianAPIError):
    """Raised when the service still rate limits us after all retries (429)."""

    def __init__(self, message: str = "Rate limit exceeded.", service: str = "Jira"):
        super().__init__(message, status_code=429, service=service)


class TaskTimeoutError(AtlassianCLIError):
    """Raised when an async task does not reach a terminal state in time."""

    def __init__(self, task_id: str, max_wait: float, last_status: str):
        self.task_id = task_id
        self.max_wait = max_wait
        self.last_status = last_status
        super().__init__(
            f"Task {task_id} timed out after {max_wait:g}s. Status: {last_status}"
        )
