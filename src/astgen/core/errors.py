"""
Fatal error taxonomy.

Anything that prevents producing output at all is raised as one of these
before work starts. Problems scoped to a single file are never raised;
they travel as FileError values inside that file's ParseOutcome.
"""


class AstgenError(Exception):
    """Base class for fatal astgen errors."""

    exit_code = 1


class ConfigError(AstgenError):
    """Invalid combination or value of settings."""

    exit_code = 2


class SinkError(AstgenError):
    """Output destination cannot be opened or written."""

    exit_code = 1
