"""Entry point for the ``jc`` command."""

from __future__ import annotations

import click
from dotenv import load_dotenv

from atlassian_cli import __version__
from atlassian_cli.cli.bitbucket import pr, repo
from atlassian_cli.cli.config_cmd import config
from atlassian_cli.cli.confluence import page, space
from atlassian_cli.cli.context import AppContext
from atlassian_cli.cli.filter import field, filter_group, label
from atlassian_cli.cli.issue import issue
from atlassian_cli.cli.project import project
from atlassian_cli.cli.search import search
from atlassian_cli.cli.task import task
from atlassian_cli.logging.logger import setup_logger
from atlassian_cli.output import FORMATS


@click.group()
@click.version_option(__version__, prog_name="jc")
@click.option("--format", "fmt", type=click.Choice(FORMATS), help="Output format.")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Write output to a file.")
@click.option("--profile", help="Config profile to use.")
@click.option("--domain", help="Atlassian site override (e.g. 'acme').")
@click.option("--debug", is_flag=True, help="Log HTTP requests to stderr.")
@click.pass_context
def cli(
    ctx: click.Context,
    fmt: str | None,
    output: str | None,
    profile: str | None,
    domain: str | None,
    debug: bool,
) -> None:
    """Jira, Confluence and Bitbucket CLI for AI agents and scripts.

    \b
    Examples:
        jc issue get PROJ-123
        jc search "project = PROJ AND status = 'In Progress'" --format plain
        jc search count "project = PROJ"
        jc issue archive --jql "project = OLD" --wait
        jc pr list my-repo --state OPEN
    """
    app = ctx.ensure_object(AppContext)
    app.format = fmt
    app.output = output
    app.profile = profile
    app.domain = domain
    app.debug = debug
    setup_logger(level="DEBUG" if debug else app.settings.log_level)


cli.add_command(config)
cli.add_command(issue)
cli.add_command(search)
cli.add_command(task)
cli.add_command(project)
cli.add_command(filter_group)
cli.add_command(field)
cli.add_command(label)
cli.add_command(space)
cli.add_command(page)
cli.add_command(repo)
cli.add_command(pr)


def main() -> None:
    load_dotenv()
    cli()


if __name__ == "__main__":
    main()
