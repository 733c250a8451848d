"""Integration test: run the CLI as a subprocess against a live Jira site."""

from __future__ import annotations

import asyncio
import json
import os
import sys

import pytest


async def _run_cli(*args: str) -> tuple[int, str, str]:
    proc = await asyncio.create_subprocess_exec(
        sys.executable,
        "-m",
        "atlassian_cli",
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=dict(os.environ),
    )
    stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=60)
    return proc.returncode, stdout.decode(), stderr.decode()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_version():
    code, stdout, _ = await _run_cli("--version")
    assert code == 0
    assert "jc" in stdout


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_projects_against_live_site():
    """Needs JIRA_DOMAIN, JIRA_EMAIL and JIRA_API_TOKEN in the environment."""
    if not all(os.environ.get(k) for k in ("JIRA_DOMAIN", "JIRA_EMAIL", "JIRA_API_TOKEN")):
        pytest.skip("Jira credentials not configured")

    code, stdout, stderr = await _run_cli("--format", "minimal", "project", "list")
    assert code == 0, stderr
    assert isinstance(json.loads(stdout), list)
