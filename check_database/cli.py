"""check_database command line: list configured objects or run a check.

Usage:
    check_database [-config PATH] [-warn N] [-error N] list databases
    check_database [-config PATH] [-warn N] [-error N] list queries
    check_database [-config PATH] [-warn N] [-error N] run QUERY on DATABASE [-PARAM VALUE ...]

The exit code of ``run`` is the severity level: 0 okay, 1 warning, 2 critical.
Any error exits with 1.
"""

from __future__ import annotations

import logging

import click

from check_database.check.engine import CheckEngine
from check_database.config.loader import DEFAULT_CONFIG_PATH, load_config
from check_database.config.models import CheckConfig, Limits
from check_database.core.exceptions import CheckError, NoResultError
from check_database.core.logging import setup_logging

logger = logging.getLogger(__name__)

PROG_NAME = "check_database"

COMMANDS_HELP = """\b
commands are:
  list databases
      list configured databases
  list queries
      list available sql query
  run query on database [parameters]
      run a query against the database
"""


class CliSettings:
    """Global options shared by every command."""

    def __init__(self, config_path: str, limits: Limits):
        self.config_path = config_path
        self.limits = limits


def format_databases(config: CheckConfig) -> list[str]:
    lines = ["type\tname\thostname\tdatabase\tuser"]
    for name in sorted(config.databases):
        db = config.databases[name]
        lines.append(f"{db.type}\t{name}\t{db.hostname}:{db.port}\t{db.database}\t{db.username}")
    return lines


def format_queries(config: CheckConfig) -> list[str]:
    lines = ["name\tparameters\tdescription"]
    for name in sorted(config.queries):
        query = config.queries[name]
        params = ", ".join(sorted(query.parameter_names))
        lines.append(f"{name}\t{params}\t{query.desc}")
    return lines


def _print_usage(ctx: click.Context) -> None:
    root = ctx.find_root()
    click.echo(root.command.get_help(root), err=True)


def _load(settings: CliSettings) -> CheckConfig:
    try:
        return load_config(settings.config_path)
    except CheckError as e:
        logger.debug("Config load failed", exc_info=True)
        raise click.ClickException(str(e)) from e


@click.group(
    invoke_without_command=True,
    epilog=COMMANDS_HELP,
    context_settings={"help_option_names": ["-h", "-help", "--help"]},
)
@click.option(
    "-config",
    "--config",
    "config_path",
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="path to the main config file",
)
@click.option("-warn", "--warn", type=float, default=0.0, help="set the warning level")
@click.option("-error", "--error", "critical", type=float, default=0.0, help="set the error level")
@click.pass_context
def cli(ctx: click.Context, config_path: str, warn: float, critical: float) -> None:
    """Run monitoring checks as SQL queries against configured databases."""
    ctx.obj = CliSettings(config_path=config_path, limits=Limits(warn=warn, critical=critical))
    if ctx.invoked_subcommand is None:
        _print_usage(ctx)
        ctx.exit(0)


@cli.command("help")
@click.pass_context
def help_command(ctx: click.Context) -> None:
    """Show this message."""
    _print_usage(ctx)


@cli.command("list")
@click.argument("what", required=False, default="")
@click.pass_obj
def list_command(settings: CliSettings, what: str) -> None:
    """List configured databases or queries."""
    config = _load(settings)
    if what == "databases":
        lines = format_databases(config)
    elif what == "queries":
        lines = format_queries(config)
    else:
        click.echo("possible objects to list: databases, queries", err=True)
        return
    for line in lines:
        click.echo(line)


@cli.command(
    "run",
    add_help_option=False,
    context_settings={"ignore_unknown_options": True, "allow_extra_args": True},
)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run_command(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Run a query against a database: run QUERY on DATABASE [-PARAM VALUE ...]."""
    if len(args) < 3 or args[1] != "on":
        _print_usage(ctx)
        ctx.exit(0)

    settings: CliSettings = ctx.obj
    query_name, database_name, raw_args = args[0], args[2], list(args[3:])
    config = _load(settings)
    try:
        engine = CheckEngine(config, settings.limits)
        outcome = engine.run_check(query_name, database_name, raw_args)
    except NoResultError as e:
        click.echo(str(e))
        ctx.exit(1)
    except CheckError as e:
        logger.debug("Check failed", exc_info=True)
        click.echo(str(e), err=True)
        ctx.exit(1)

    click.echo(outcome.message)
    ctx.exit(outcome.exit_code)


def main(args: list[str] | None = None) -> int:
    """Console script entry point; every error exits with 1."""
    setup_logging()
    try:
        code = cli.main(args=args, prog_name=PROG_NAME, standalone_mode=False)
    except click.ClickException as e:
        e.show()
        return 1
    except click.Abort:
        click.echo("Aborted!", err=True)
        return 1
    return code or 0
