"""TOML config loader with include-directory merging and env var substitution."""

from __future__ import annotations

import logging
import os
import re
import tomllib
from pathlib import Path

from pydantic import ValidationError

from check_database.config.models import DEFAULT_PORTS, DEFAULT_TYPE, CheckConfig, Database
from check_database.core.exceptions import (
    ConfigFileNotFoundError,
    ConfigParseError,
    DuplicateKeyError,
    IncludeDirectoryError,
    UnknownDatabaseTypeError,
)

logger = logging.getLogger(__name__)

_ENV_PATTERN = re.compile(r"\$\{(\w+)(?::([^}]*))?\}")

DEFAULT_CONFIG_PATH = "check_database.conf"


def _substitute_env_vars(value: str) -> str:
    """Replace ${VAR} or ${VAR:default} with environment variable values."""

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        default = match.group(2)
        return os.environ.get(var_name, default if default is not None else match.group(0))

    return _ENV_PATTERN.sub(replacer, value)


def _walk_and_substitute(obj):
    """Recursively substitute env vars in all string values."""
    if isinstance(obj, str):
        return _substitute_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_substitute(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_substitute(item) for item in obj]
    return obj


def load_toml(path: Path) -> dict:
    """Load a TOML file with env var substitution."""
    with open(path, "rb") as f:
        raw = tomllib.load(f)
    return _walk_and_substitute(raw)


def parse_config(path: Path) -> CheckConfig:
    """Parse a single config file or fragment, without following includes."""
    try:
        data = load_toml(path)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"could not parse file '{path}': {e}") from e
    except OSError as e:
        raise ConfigParseError(f"could not open file '{path}': {e}") from e

    try:
        return CheckConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigParseError(f"could not parse file '{path}': {e}") from e


def _resolve_include_dir(config_path: Path, include_dir: str) -> Path:
    path = Path(include_dir)
    if not path.is_absolute():
        path = config_path.parent / path
    return path


def _list_fragments(include_dir: Path) -> list[Path]:
    """List the include directory in file name order."""
    try:
        return sorted(include_dir.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise IncludeDirectoryError(f"could not open directory '{include_dir}': {e}") from e


def merge_fragment(config: CheckConfig, fragment: CheckConfig, filename: str) -> None:
    """Merge a fragment's queries and databases into ``config`` in place.

    Raises DuplicateKeyError on the first name ``config`` already holds.
    """
    for name, query in fragment.queries.items():
        if name in config.queries:
            raise DuplicateKeyError("query", name, filename)
        config.queries[name] = query
    for name, db in fragment.databases.items():
        if name in config.databases:
            raise DuplicateKeyError("database", name, filename)
        config.databases[name] = db


def apply_database_defaults(name: str, db: Database) -> Database:
    """Fill in the default type and the type's default port."""
    db_type = db.type or DEFAULT_TYPE
    port = db.port
    if port == 0:
        if db_type not in DEFAULT_PORTS:
            raise UnknownDatabaseTypeError(name, db_type)
        port = DEFAULT_PORTS[db_type]
    return db.model_copy(update={"type": db_type, "port": port})


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> CheckConfig:
    """Load the main config file, merge its include directory and apply defaults."""
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigFileNotFoundError(f"could not load main config file '{config_path}'")

    logger.debug("Loading config from %s", config_path)
    config = parse_config(config_path)

    if config.include_dir:
        include_dir = _resolve_include_dir(config_path, config.include_dir)
        for fragment_path in _list_fragments(include_dir):
            logger.debug("Merging config fragment %s", fragment_path)
            fragment = parse_config(fragment_path)
            merge_fragment(config, fragment, fragment_path.name)

    config.databases = {
        name: apply_database_defaults(name, db) for name, db in config.databases.items()
    }
    logger.debug(
        "Loaded %d queries and %d databases", len(config.queries), len(config.databases)
    )
    return config
