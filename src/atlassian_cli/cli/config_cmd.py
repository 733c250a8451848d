"""Config commands: init, set-profile, set-defaults, show."""

from __future__ import annotations

import click

from atlassian_cli.cli.context import AppContext, pass_context
from atlassian_cli.config import (
    ConfigFile,
    ConfigProfile,
    get_config_path,
    init_config,
    load_config,
    save_config,
)
from atlassian_cli.errors import ConfigError
from atlassian_cli.output import FORMATS


def _load_or_fail() -> ConfigFile:
    try:
        config = load_config()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    if config is None:
        raise click.ClickException("No config file found. Run 'jc config init' first.")
    return config


def _mask(token: str) -> str:
    return f"{'*' * 8}{token[-4:]}" if len(token) > 4 else "*" * 8


@click.group()
def config() -> None:
    """Manage the config file (profiles and defaults)."""


@config.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
@pass_context
def init(ctx: AppContext, force: bool) -> None:
    """Create an empty config file."""
    path = get_config_path()
    if path.exists() and not force:
        raise click.ClickException(f"Config already exists at {path}. Use --force to overwrite.")
    init_config(path)
    ctx.emit({"success": True, "path": str(path)})


@config.command("set-profile")
@click.argument("name")
@click.option("--domain", required=True, help="Atlassian site (e.g. 'acme' for acme.atlassian.net).")
@click.option("--email", required=True, help="Account email.")
@click.option("--token", required=True, help="API token.")
@click.option("--default", "make_default", is_flag=True, help="Make this the default profile.")
@pass_context
def set_profile(
    ctx: AppContext, name: str, domain: str, email: str, token: str, make_default: bool
) -> None:
    """Add or replace a credential profile."""
    config_file = _load_or_fail()
    config_file.profiles[name] = ConfigProfile(domain=domain, email=email, api_token=token)
    if make_default:
        config_file.defaults.profile = name
    save_config(config_file)
    ctx.emit({"success": True, "profile": name, "default": config_file.defaults.profile == name})


@config.command("set-defaults")
@click.option("--profile", help="Default profile name.")
@click.option("--project", help="Default Jira project key.")
@click.option("--space", help="Default Confluence space key.")
@click.option("--format", "fmt", type=click.Choice(FORMATS), help="Default output format.")
@pass_context
def set_defaults(
    ctx: AppContext,
    profile: str | None,
    project: str | None,
    space: str | None,
    fmt: str | None,
) -> None:
    """Change command defaults."""
    config_file = _load_or_fail()
    updates = {"profile": profile, "project": project, "space": space, "format": fmt}
    config_file.defaults = config_file.defaults.model_copy(
        update={k: v for k, v in updates.items() if v is not None}
    )
    save_config(config_file)
    ctx.emit(config_file.defaults.model_dump(exclude_none=True))


@config.command("show")
@pass_context
def show(ctx: AppContext) -> None:
    """Show the config file with API tokens masked."""
    config_file = _load_or_fail()
    data = config_file.model_dump(mode="json", by_alias=True, exclude_none=True)
    for profile in data["profiles"].values():
        profile["apiToken"] = _mask(profile["apiToken"])
    data["path"] = str(get_config_path())
    ctx.emit(data)
