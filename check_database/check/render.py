"""Message templates rendered with Jinja2."""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any

import jinja2

from check_database.check.threshold import ThresholdResult
from check_database.config.models import Database, Parameter, Query
from check_database.core.exceptions import TemplateRenderError

# "{{.Result}}" and "{{ .Limit.Warn }}" mean the same as "{{ Result }}"
_LEADING_DOT = re.compile(r"(\{\{-?|\{%-?\s*(?:if|elif|for\s+\w+\s+in))(\s*)\.(?=[A-Za-z_])")

# Decimal exponents printed in positional notation
_MIN_POSITIONAL_EXP = -4
_MAX_POSITIONAL_EXP = 6


def format_float(value: float) -> str:
    """Format a float with the shortest digits that round-trip.

    Positional notation is used for decimal exponents in [-4, 6), scientific
    notation with a signed two-digit exponent otherwise: ``5``, ``2.75``,
    ``1.234567e+06``, ``1e-05``.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"

    sign, digits, exponent = Decimal(repr(value)).normalize().as_tuple()
    mantissa = "".join(str(d) for d in digits)
    exp = len(digits) + exponent - 1
    prefix = "-" if sign else ""

    if exp < _MIN_POSITIONAL_EXP or exp >= _MAX_POSITIONAL_EXP:
        head, tail = mantissa[0], mantissa[1:]
        return f"{prefix}{head}{'.' + tail if tail else ''}e{'-' if exp < 0 else '+'}{abs(exp):02d}"
    if exp < 0:
        return f"{prefix}0.{'0' * (-exp - 1)}{mantissa}"
    if len(mantissa) <= exp + 1:
        return f"{prefix}{mantissa}{'0' * (exp + 1 - len(mantissa))}"
    return f"{prefix}{mantissa[:exp + 1]}.{mantissa[exp + 1:]}"


def format_value(value: Any) -> Any:
    if isinstance(value, float):
        return format_float(value)
    return value


def normalize_template(source: str) -> str:
    return _LEADING_DOT.sub(lambda m: f"{m.group(1)}{m.group(2) or ' '}", source)


class ResultRenderer:
    """Compiles a query's message template once and renders it per check."""

    def __init__(self, source: str, name: str = "default"):
        self.name = name
        self._env = jinja2.Environment(
            undefined=jinja2.StrictUndefined,
            finalize=format_value,
            autoescape=False,
            keep_trailing_newline=True,
        )
        try:
            self._template = self._env.from_string(normalize_template(source))
        except jinja2.TemplateSyntaxError as e:
            raise TemplateRenderError(f"could not parse template of query '{name}': {e}") from e

    def render(self, variables: dict[str, Any]) -> str:
        try:
            return self._template.render(variables)
        except jinja2.TemplateError as e:
            raise TemplateRenderError(
                f"could not render template of query '{self.name}': {e}"
            ) from e


# Record fields are reachable under their config key and their capitalized
# record name, e.g. DB.hostname and DB.Hostname.
def _database_fields(db: Database) -> dict[str, Any]:
    fields = db.model_dump()
    fields.update(
        Type=db.type,
        Username=db.username,
        Password=db.password,
        Hostname=db.hostname,
        Port=db.port,
        Database=db.database,
        SSL=db.ssl,
    )
    return fields


def _parameter_fields(param: Parameter) -> dict[str, Any]:
    return {
        "name": param.name,
        "desc": param.desc,
        "value": param.value,
        "Name": param.name,
        "Descr": param.desc,
        "Value": param.value,
    }


def _query_fields(query: Query) -> dict[str, Any]:
    params = [_parameter_fields(p) for p in query.params]
    return {
        "query": query.query,
        "params": params,
        "desc": query.desc,
        "message": query.message,
        "Query": query.query,
        "Parameters": params,
        "Doc": query.desc,
        "Message": query.message,
    }


def build_variables(
    db_name: str,
    db: Database,
    query_name: str,
    query: Query,
    threshold: ThresholdResult,
) -> dict[str, Any]:
    """Variables exposed to a message template."""
    return {
        "DBName": db_name,
        "DB": _database_fields(db),
        "QueryName": query_name,
        "Query": _query_fields(query),
        "Result": threshold.result,
        "Level": int(threshold.level),
        "LevelName": threshold.level_name,
        "Limit": {
            "Critical": threshold.critical,
            "Warn": threshold.warn,
        },
    }
