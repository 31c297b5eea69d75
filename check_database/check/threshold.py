"""Threshold evaluation, mapping a scalar result to okay, warning or critical."""

from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel

from check_database.config.models import Limits


class Level(IntEnum):
    """Severity level, also the process exit code of a check."""

    OKAY = 0
    WARNING = 1
    CRITICAL = 2

    def __str__(self) -> str:
        return self.name.lower()


class ThresholdResult(BaseModel):
    result: float
    warn: float
    critical: float
    level: Level

    @property
    def level_name(self) -> str:
        return str(self.level)


def evaluate(result: float, warn: float, crit: float) -> Level:
    """Classify ``result`` against the warning and critical thresholds.

    The direction follows from the thresholds: when ``crit <= warn`` lower
    values are worse, otherwise higher values are worse. Both boundaries are
    inclusive.
    """
    if crit <= warn:
        if result <= crit:
            return Level.CRITICAL
        if result <= warn:
            return Level.WARNING
        return Level.OKAY
    if result >= crit:
        return Level.CRITICAL
    if result >= warn:
        return Level.WARNING
    return Level.OKAY


def evaluate_thresholds(result: float, limits: Limits) -> ThresholdResult:
    return ThresholdResult(
        result=result,
        warn=limits.warn,
        critical=limits.critical,
        level=evaluate(result, limits.warn, limits.critical),
    )
