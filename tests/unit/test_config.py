"""Tests for config file handling and credential resolution."""

from __future__ import annotations

import json

import pytest

from atlassian_cli.config import (
    ConfigFile,
    ConfigProfile,
    get_active_profile,
    get_config_path,
    get_default_format,
    get_default_project,
    get_default_space,
    init_config,
    load_config,
    resolve_jira_credentials,
    save_config,
)
from atlassian_cli.errors import ConfigError
from atlassian_cli.settings import CLISettings, load_cli_settings


@pytest.fixture
def config_with_profiles(isolated_env):
    config = ConfigFile(
        profiles={
            "default": ConfigProfile(domain="acme", email="me@acme.com", api_token="file-token"),
            "other": ConfigProfile(domain="other", email="me@other.com", api_token="other-token"),
        }
    )
    config.defaults.project = "PROJ"
    config.defaults.format = "plain"
    save_config(config)
    return config


def test_config_path_override(isolated_env):
    assert get_config_path() == isolated_env


def test_load_missing_returns_none():
    assert load_config() is None


def test_init_writes_defaults(isolated_env):
    init_config()
    data = json.loads(isolated_env.read_text())
    assert data == {"profiles": {}, "defaults": {"profile": "default", "format": "json"}}


def test_save_uses_api_token_alias(config_with_profiles, isolated_env):
    data = json.loads(isolated_env.read_text())
    assert data["profiles"]["default"]["apiToken"] == "file-token"
    assert load_config().profiles["other"].api_token == "other-token"


def test_invalid_config_raises(isolated_env):
    isolated_env.parent.mkdir(parents=True)
    isolated_env.write_text("{not json")
    with pytest.raises(ConfigError, match="Invalid config file"):
        load_config()


def test_active_profile(config_with_profiles):
    assert get_active_profile(config_with_profiles).domain == "acme"
    assert get_active_profile(config_with_profiles, "other").domain == "other"
    assert get_active_profile(config_with_profiles, "missing") is None


class TestResolveJiraCredentials:
    def test_flags_win(self, config_with_profiles, jira_env):
        creds = resolve_jira_credentials(domain="flag", email="f@x.com", token="flag-token")
        assert creds.domain == "flag"
        assert creds.api_token == "flag-token"

    def test_env_beats_config(self, config_with_profiles, jira_env):
        creds = resolve_jira_credentials()
        assert creds.domain == "acme"
        assert creds.email == "agent@example.com"
        assert creds.api_token == "tok-1234"

    def test_domain_flag_overrides_env(self, jira_env):
        creds = resolve_jira_credentials(domain="other-site")
        assert creds.domain == "other-site"
        assert creds.email == "agent@example.com"

    def test_profile_fills_gaps(self, config_with_profiles, monkeypatch):
        monkeypatch.setenv("JIRA_API_TOKEN", "env-token")
        creds = resolve_jira_credentials(domain="override")
        assert creds.domain == "override"
        assert creds.email == "me@acme.com"
        assert creds.api_token == "env-token"

    def test_named_profile(self, config_with_profiles):
        creds = resolve_jira_credentials(profile="other")
        assert creds.email == "me@other.com"

    def test_missing_credentials(self):
        with pytest.raises(ConfigError, match="Missing Jira credentials"):
            resolve_jira_credentials()

    def test_unknown_profile(self, config_with_profiles):
        with pytest.raises(ConfigError):
            resolve_jira_credentials(profile="nope")


def test_defaults_from_config(config_with_profiles):
    assert get_default_project() == "PROJ"
    assert get_default_format() == "plain"


def test_project_env_beats_config(config_with_profiles, monkeypatch):
    monkeypatch.setenv("JIRA_PROJECT", "ENV")
    assert get_default_project() == "ENV"


def test_defaults_without_config():
    assert get_default_project() is None
    assert get_default_format() == "json"


def test_cli_settings_build_retry_policy(monkeypatch):
    monkeypatch.setenv("JC_MAX_RETRIES", "5")
    monkeypatch.setenv("JC_BASE_DELAY", "0.5")
    policy = CLISettings().retry_policy()
    assert policy.max_retries == 5
    assert policy.base_delay == 0.5
    assert policy.max_delay == 30.0


def test_invalid_cli_setting_raises_config_error(monkeypatch):
    monkeypatch.setenv("JC_MAX_RETRIES", "lots")
    with pytest.raises(ConfigError, match="Invalid JC_"):
        load_cli_settings()
    with pytest.raises(ConfigError):
        get_config_path()


def test_default_space_from_config(config_with_profiles):
    assert get_default_space() is None
    config_with_profiles.defaults.space = "ENG"
    save_config(config_with_profiles)
    assert get_default_space() == "ENG"


def test_space_env_beats_config(config_with_profiles, monkeypatch):
    config_with_profiles.defaults.space = "ENG"
    save_config(config_with_profiles)
    monkeypatch.setenv("JIRA_SPACE", "12345")
    assert get_default_space() == "12345"
