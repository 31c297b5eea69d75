"""Pydantic models for the TOML configuration."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TYPE = "postgres"
DEFAULT_PORTS: dict[str, int] = {
    "postgres": 5432,
    "mysql": 3306,
}

RESERVED_PARAMETER_NAMES = frozenset({"help"})
_PARAMETER_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")


class Database(BaseModel):
    """Connection details to make a successful connection."""

    model_config = ConfigDict(frozen=True)

    type: str = ""
    username: str = ""
    password: str = ""
    hostname: str = ""
    port: int = 0
    database: str = ""
    ssl: str = ""


class Parameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    desc: str = ""
    # Bound from the command line, see Query.bind
    value: str = Field(default="", exclude=True)

    @property
    def help_text(self) -> str:
        return self.desc or f"parameter for {self.name}"


class Query(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str = ""
    params: list[Parameter] = Field(default_factory=list)
    desc: str = ""
    message: str = ""

    @field_validator("params")
    @classmethod
    def _check_parameter_names(cls, params: list[Parameter]) -> list[Parameter]:
        seen: set[str] = set()
        for param in params:
            if not _PARAMETER_NAME.match(param.name):
                raise ValueError(f"invalid parameter name '{param.name}'")
            if param.name in RESERVED_PARAMETER_NAMES:
                raise ValueError(f"parameter name '{param.name}' is reserved")
            if param.name in seen:
                raise ValueError(f"duplicate parameter name '{param.name}'")
            seen.add(param.name)
        return params

    @property
    def parameter_names(self) -> list[str]:
        return [p.name for p in self.params]

    def bind(self, values: dict[str, str]) -> Query:
        """Return a copy with each parameter's value set from ``values``."""
        params = [p.model_copy(update={"value": values.get(p.name, "")}) for p in self.params]
        return self.model_copy(update={"params": params})

    def bound_values(self) -> tuple[str, ...]:
        """Parameter values in declaration order, for positional binding."""
        return tuple(p.value for p in self.params)


class CheckConfig(BaseModel):
    """One configuration file, or the merge of a main file and its fragments."""

    model_config = ConfigDict(populate_by_name=True)

    include_dir: str = ""
    queries: dict[str, Query] = Field(default_factory=dict, alias="query")
    databases: dict[str, Database] = Field(default_factory=dict, alias="database")


class Limits(BaseModel):
    """Warning and critical thresholds taken from the command line."""

    model_config = ConfigDict(frozen=True)

    warn: float = 0.0
    critical: float = 0.0
