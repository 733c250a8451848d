"""Shared pytest configuration."""

import logging
import os

import pytest
from helpers import FakeClock, SleepRecorder

_ENV_PREFIXES = ("JIRA_", "BITBUCKET_", "JC_")


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: marks integration tests")


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly requested."""
    if not config.getoption("-m", default=None) or "integration" not in config.getoption("-m", default=""):
        skip_integration = pytest.mark.skip(reason="use -m integration to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


@pytest.fixture(autouse=True)
def isolated_env(request, monkeypatch, tmp_path):
    """Keep the developer's credentials and config file out of unit tests."""
    if request.node.get_closest_marker("integration"):
        yield None
        return
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES):
            monkeypatch.delenv(name, raising=False)
    config_path = tmp_path / "jc" / "config.json"
    monkeypatch.setenv("JC_CONFIG_PATH", str(config_path))
    yield config_path
    logging.getLogger("atlassian_cli").handlers.clear()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sleeper(fake_clock):
    return SleepRecorder(fake_clock)


@pytest.fixture
def jira_env(monkeypatch):
    monkeypatch.setenv("JIRA_DOMAIN", "acme")
    monkeypatch.setenv("JIRA_EMAIL", "agent@example.com")
    monkeypatch.setenv("JIRA_API_TOKEN", "tok-1234")
