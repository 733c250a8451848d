from atlassian_cli.tasks.poller import DEFAULT_INTERVAL, DEFAULT_MAX_WAIT, poll_task

__all__ = ["DEFAULT_INTERVAL", "DEFAULT_MAX_WAIT", "poll_task"]
