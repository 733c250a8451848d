"""Config file with named credential profiles and command defaults.

Stored as JSON at ``~/.config/jc/config.json`` (``%APPDATA%\\jc\\config.json``
on Windows) unless ``JC_CONFIG_PATH`` points elsewhere::

    {
      "profiles": {"default": {"domain": "acme", "email": "...", "apiToken": "..."}},
      "defaults": {"profile": "default", "project": "PROJ", "format": "json"}
    }
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from atlassian_cli.errors import ConfigError
from atlassian_cli.settings import JiraSettings, load_cli_settings

logger = logging.getLogger("atlassian_cli")

OutputFormat = Literal["json", "plain", "minimal"]


class ConfigProfile(BaseModel):
    domain: str
    email: str
    api_token: str = Field(alias="apiToken")

    model_config = {"populate_by_name": True}


class ConfigDefaults(BaseModel):
    profile: str = "default"
    project: str | None = None
    space: str | None = None
    format: OutputFormat = "json"


class ConfigFile(BaseModel):
    profiles: dict[str, ConfigProfile] = Field(default_factory=dict)
    defaults: ConfigDefaults = Field(default_factory=ConfigDefaults)


class JiraCredentials(BaseModel):
    """Resolved credentials for Jira and Confluence."""

    domain: str
    email: str
    api_token: str

    model_config = {"frozen": True}


def get_config_path() -> Path:
    override = load_cli_settings().config_path
    if override:
        return Path(override).expanduser()
    if sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "")) / "jc" / "config.json"
    return Path.home() / ".config" / "jc" / "config.json"


def load_config(path: Path | None = None) -> ConfigFile | None:
    """Load the config file, or return None if it does not exist."""
    path = path or get_config_path()
    if not path.exists():
        return None
    try:
        return ConfigFile.model_validate_json(path.read_text(encoding="utf-8"))
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e


def save_config(config: ConfigFile, path: Path | None = None) -> Path:
    path = path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json", by_alias=True, exclude_none=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    logger.debug("Wrote config to %s", path)
    return path


def init_config(path: Path | None = None) -> ConfigFile:
    """Write an empty config file with default settings."""
    config = ConfigFile()
    save_config(config, path)
    return config


def get_active_profile(config: ConfigFile, profile_name: str | None = None) -> ConfigProfile | None:
    name = profile_name or config.defaults.profile
    return config.profiles.get(name)


def resolve_jira_credentials(
    domain: str | None = None,
    email: str | None = None,
    token: str | None = None,
    profile: str | None = None,
    path: Path | None = None,
) -> JiraCredentials:
    """Resolve credentials from CLI flags, then JIRA_* env vars, then the config file.

    A complete set of flags wins outright. A complete set of env vars is used
    next, with any individual flag still taking precedence. Otherwise the
    active profile fills the gaps field by field.

    Raises:
        ConfigError: No complete set of credentials could be found.
    """
    if domain and email and token:
        return JiraCredentials(domain=domain, email=email, api_token=token)

    env = JiraSettings()
    if env.domain and env.email and env.api_token:
        return JiraCredentials(
            domain=domain or env.domain,
            email=email or env.email,
            api_token=token or env.api_token,
        )

    config = load_config(path)
    if config is not None:
        active = get_active_profile(config, profile)
        if active is not None:
            return JiraCredentials(
                domain=domain or env.domain or active.domain,
                email=email or env.email or active.email,
                api_token=token or env.api_token or active.api_token,
            )

    raise ConfigError(
        "Missing Jira credentials. Set JIRA_DOMAIN, JIRA_EMAIL, JIRA_API_TOKEN "
        "or run 'jc config init' and 'jc config set-profile'."
    )


def get_default_project(path: Path | None = None) -> str | None:
    env_project = JiraSettings().project
    if env_project:
        return env_project
    config = load_config(path)
    return config.defaults.project if config else None


def get_default_format(path: Path | None = None) -> OutputFormat:
    config = load_config(path)
    return config.defaults.format if config else "json"


def get_default_space(path: Path | None = None) -> str | None:
    """Default Confluence space from JIRA_SPACE or the config defaults."""
    env_space = JiraSettings().space
    if env_space:
        return env_space
    config = load_config(path)
    return config.defaults.space if config else None
