from __future__ import annotations


class DCRError(Exception):
    """Base class for reconciler errors."""


class ConfigError(DCRError):
    pass


class StartupError(DCRError):
    """A precondition for running any pass could not be met."""
