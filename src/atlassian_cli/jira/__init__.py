from atlassian_cli.jira.adf import adf_to_text, text_to_adf
from atlassian_cli.jira.client import JiraClient, site_url
from atlassian_cli.jira.models import TERMINAL_STATUSES, TaskProgress, TaskResult, TaskStatus

__all__ = [
    "JiraClient",
    "TERMINAL_STATUSES",
    "TaskProgress",
    "TaskResult",
    "TaskStatus",
    "adf_to_text",
    "site_url",
    "text_to_adf",
]
