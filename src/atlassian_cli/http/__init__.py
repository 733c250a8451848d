from atlassian_cli.http.client import BaseClient, extract_error_message
from atlassian_cli.http.retry import (
    DEFAULT_RETRYABLE_STATUSES,
    RetryPolicy,
    RetryState,
    RetryTransport,
    failure_reason,
    is_retryable_error,
    parse_retry_after,
    send_with_retry,
)

__all__ = [
    "BaseClient",
    "DEFAULT_RETRYABLE_STATUSES",
    "RetryPolicy",
    "RetryState",
    "RetryTransport",
    "extract_error_message",
    "failure_reason",
    "is_retryable_error",
    "parse_retry_after",
    "send_with_retry",
]
