"""Exceptions raised by composer-migrate."""


class MigrationError(Exception):
    """Base class for migration failures."""


class ConfigurationError(MigrationError):
    """The project or its composer.json cannot be used."""


class ExecutionError(MigrationError):
    """An external tool failed or timed out."""


class VersionControlError(ExecutionError):
    """A git command failed."""
