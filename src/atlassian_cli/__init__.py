"""Jira, Confluence and Bitbucket command-line clients for AI agents."""

__version__ = "1.0.0"

from atlassian_cli.http.retry import RetryPolicy, RetryTransport  # noqa: E402
from atlassian_cli.jira.client import JiraClient  # noqa: E402
from atlassian_cli.tasks.poller import poll_task  # noqa: E402

__all__ = ["JiraClient", "RetryPolicy", "RetryTransport", "__version__", "poll_task"]
