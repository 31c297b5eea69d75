"""Nagios-style database checks: run a configured SQL query and grade its result."""

__version__ = "1.0.0"
