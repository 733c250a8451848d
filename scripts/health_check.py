#!/usr/bin/env python3
"""Validate jc credentials and test connectivity to Jira."""

import asyncio
import sys

from dotenv import load_dotenv

from atlassian_cli.config import resolve_jira_credentials
from atlassian_cli.errors import AtlassianCLIError
from atlassian_cli.jira.client import JiraClient, site_url
from atlassian_cli.settings import CLISettings


async def main() -> int:
    load_dotenv()
    print("Resolving credentials...")
    try:
        creds = resolve_jira_credentials()
    except AtlassianCLIError as e:
        print(f"FAIL: {e}")
        return 1

    settings = CLISettings()
    print(f"  Site: {site_url(creds.domain)}")
    print(f"  Email: {creds.email}")
    print(f"  API token: {'*' * 8}...{creds.api_token[-4:]}")
    print(f"  Retries: {settings.max_retries} (base {settings.base_delay}s, max {settings.max_delay}s)")

    print("\nTesting connectivity...")
    client = JiraClient(
        creds.domain,
        creds.email,
        creds.api_token,
        timeout=settings.timeout,
        retry_policy=settings.retry_policy(),
    )

    try:
        me = await client.get_current_user()
        print(f"  OK: Authenticated as {me.get('displayName')} ({me.get('accountId')})")
        projects = await client.list_projects()
        print(f"  OK: Found {len(projects)} accessible projects")
        for p in projects[:5]:
            print(f"    - {p.get('key')}: {p.get('name')}")
        if len(projects) > 5:
            print(f"    ... and {len(projects) - 5} more")
        return 0
    except Exception as e:
        print(f"  FAIL: {e}")
        return 1
    finally:
        await client.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
