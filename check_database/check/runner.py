"""Query runner: binds command-line parameters and reads the scalar result."""

from __future__ import annotations

import logging
from typing import Callable

import click

from check_database.config.models import Database, Query
from check_database.core.exceptions import MissingParameterError, NoResultError, ParameterError
from check_database.db.connection import ConnectionManager

logger = logging.getLogger(__name__)


def _parameter_command(query: Query, prog: str) -> click.Command:
    """Build a click command declaring one string option per query parameter."""
    options = [
        click.Option(
            [f"-{param.name}", f"--{param.name}", f"param_{index}"],
            default="",
            help=param.help_text,
        )
        for index, param in enumerate(query.params)
    ]
    return click.Command(prog, params=options, add_help_option=False)


def split_assignments(query: Query, raw_args: list[str]) -> list[str]:
    """Rewrite ``-name=value`` and ``--name=value`` as ``--name value``.

    click reads ``-a=foo`` as the short option ``-a`` with value ``=foo``, so
    assignments to declared parameters are split before parsing. A token that
    is the value of the preceding option is passed through untouched, as is
    everything after ``--``.
    """
    names = set(query.parameter_names)
    args: list[str] = []
    expect_value = False
    for index, arg in enumerate(raw_args):
        if expect_value:
            args.append(arg)
            expect_value = False
            continue
        if arg == "--":
            args.extend(raw_args[index:])
            break
        dashes = len(arg) - len(arg.lstrip("-"))
        if dashes in (1, 2):
            name, sep, value = arg[dashes:].partition("=")
            if name in names:
                if sep:
                    args.extend([f"--{name}", value])
                    continue
                expect_value = True
        args.append(arg)
    return args


def parse_parameters(query: Query, raw_args: list[str], prog: str = "run") -> dict[str, str]:
    """Parse ``-name value`` arguments into a parameter name to value mapping."""
    command = _parameter_command(query, prog)
    try:
        ctx = command.make_context(prog, split_assignments(query, list(raw_args)))
    except click.ClickException as e:
        raise ParameterError(f"{prog}: {e.format_message()}") from e
    return {
        param.name: ctx.params.get(f"param_{index}") or ""
        for index, param in enumerate(query.params)
    }


def bind_parameters(query: Query, raw_args: list[str], prog: str = "run") -> Query:
    """Return the query with its parameters bound; every value must be non-empty."""
    values = parse_parameters(query, raw_args, prog)
    for param in query.params:
        if not values[param.name]:
            raise MissingParameterError(param.name)
    return query.bind(values)


class QueryRunner:
    """Executes a query against a database and extracts its single numeric result."""

    def __init__(
        self, connection_factory: Callable[[Database], ConnectionManager] = ConnectionManager
    ):
        self.connection_factory = connection_factory

    def run(
        self, query: Query, db: Database, raw_args: list[str], prog: str = "run"
    ) -> tuple[Query, float]:
        """Bind parameters, execute the query and return the bound query with its result.

        Raises MissingParameterError before any connection is opened, and
        NoResultError when the query returns no row.
        """
        bound = bind_parameters(query, raw_args, prog)
        manager = self.connection_factory(db)
        result = manager.fetch_scalar(bound.query, bound.bound_values())
        if result is None:
            raise NoResultError()
        logger.debug("Query returned %s", result)
        return bound, result
