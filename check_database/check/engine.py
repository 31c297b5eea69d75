"""Check engine: looks up a query and database, runs it and renders the message."""

from __future__ import annotations

import logging

from pydantic import BaseModel

from check_database.check.render import ResultRenderer, build_variables
from check_database.check.runner import QueryRunner
from check_database.check.threshold import ThresholdResult, evaluate_thresholds
from check_database.config.models import CheckConfig, Limits
from check_database.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class CheckOutcome(BaseModel):
    message: str
    threshold: ThresholdResult

    @property
    def exit_code(self) -> int:
        return int(self.threshold.level)


class CheckEngine:
    """Runs configured queries against configured databases."""

    def __init__(self, config: CheckConfig, limits: Limits, runner: QueryRunner | None = None):
        self.config = config
        self.limits = limits
        self.runner = runner or QueryRunner()

    def run_check(self, query_name: str, database_name: str, raw_args: list[str]) -> CheckOutcome:
        query = self.config.queries.get(query_name)
        if query is None:
            raise NotFoundError(f"could not find query '{query_name}'")
        db = self.config.databases.get(database_name)
        if db is None:
            raise NotFoundError(f"could not find database '{database_name}'")

        renderer = ResultRenderer(query.message, name=query_name)
        prog = f"check_database run {query_name} on {database_name}"
        bound, result = self.runner.run(query, db, raw_args, prog=prog)

        threshold = evaluate_thresholds(result, self.limits)
        logger.info(
            "Check '%s' on '%s': result=%s level=%s",
            query_name,
            database_name,
            result,
            threshold.level_name,
            extra={
                "query": query_name,
                "database": database_name,
                "result": result,
                "severity": threshold.level_name,
            },
        )
        message = renderer.render(build_variables(database_name, db, query_name, bound, threshold))
        return CheckOutcome(message=message, threshold=threshold)
