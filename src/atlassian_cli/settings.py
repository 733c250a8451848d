"""Configuration settings loaded from environment variables."""

from __future__ import annotations

from pydantic import ValidationError
from pydantic_settings import BaseSettings

from atlassian_cli.errors import ConfigError
from atlassian_cli.http.retry import RetryPolicy


class JiraSettings(BaseSettings):
    """Jira / Confluence credentials from JIRA_* variables.

    Every field is optional here; missing credentials are filled from the
    config file profile by :func:`atlassian_cli.config.resolve_jira_credentials`.
    """

    model_config = {"env_prefix": "JIRA_", "extra": "ignore"}

    domain: str | None = None
    email: str | None = None
    api_token: str | None = None
    project: str | None = None
    space: str | None = None


class BitbucketSettings(BaseSettings):
    """Bitbucket settings from BITBUCKET_* variables."""

    model_config = {"env_prefix": "BITBUCKET_", "extra": "ignore"}

    url: str = "https://api.bitbucket.org/2.0"
    workspace: str | None = None
    token: str | None = None
    username: str | None = None
    app_password: str | None = None


class CLISettings(BaseSettings):
    """Behaviour knobs shared by all commands, from JC_* variables."""

    model_config = {"env_prefix": "JC_", "extra": "ignore"}

    log_level: str = "WARNING"
    timeout: float = 30
    ssl_verify: bool | str = True
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    poll_interval: float = 2.0
    poll_max_wait: float = 300.0
    config_path: str | None = None

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
        )


def load_cli_settings() -> CLISettings:
    """Read :class:`CLISettings`, reporting malformed JC_* values as a ConfigError."""
    try:
        return CLISettings()
    except ValidationError as e:
        raise ConfigError(f"Invalid JC_* environment setting: {e}") from e
