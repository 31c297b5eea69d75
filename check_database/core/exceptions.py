"""check_database exception hierarchy for precise error handling."""

from __future__ import annotations


class CheckError(Exception):
    """Base exception for all check_database errors."""


class ConfigurationError(CheckError):
    """Invalid or missing configuration."""


class ConfigFileNotFoundError(ConfigurationError):
    """The main configuration file does not exist."""


class ConfigParseError(ConfigurationError):
    """A configuration file could not be read, parsed or validated."""


class IncludeDirectoryError(ConfigurationError):
    """The include directory could not be listed."""


class DuplicateKeyError(ConfigurationError):
    """A query or database name is defined in more than one file."""

    def __init__(self, kind: str, key: str, filename: str):
        super().__init__(f"{kind} '{key}' already exists in config, duplicate in file '{filename}'")
        self.kind = kind
        self.key = key
        self.filename = filename


class UnknownDatabaseTypeError(ConfigurationError):
    """A database profile has a type with no known default port."""

    def __init__(self, name: str, db_type: str):
        super().__init__(f"unknown database type '{db_type}' for database '{name}'")
        self.name = name
        self.db_type = db_type


class NotFoundError(CheckError):
    """A query or database name was not found in the configuration."""


class ParameterError(CheckError):
    """Query parameters on the command line could not be parsed."""


class MissingParameterError(ParameterError):
    """A query parameter is empty after parsing the command line."""

    def __init__(self, name: str):
        super().__init__(f"parameter '{name}' is empty")
        self.name = name


class DatabaseConnectionError(CheckError):
    """Failed to establish a database connection."""


class DatabaseQueryError(CheckError):
    """A SQL query failed or its result could not be read."""


class NoResultError(DatabaseQueryError):
    """The query returned no rows."""

    def __init__(self, message: str = "no value returned by query"):
        super().__init__(message)


class TemplateRenderError(CheckError):
    """The message template could not be compiled or rendered."""
