# verkcli/exceptions.py
"""
Errors surfaced to the CLI. Anything deriving from VerkcliError is printed
as a one-line message and exits with status 1.
"""

from typing import Optional


class VerkcliError(Exception):
    """Base class for expected, user-facing failures."""


class ConfigError(VerkcliError):
    """Config file missing/invalid, unknown profile, or empty base URL."""


class ApiError(VerkcliError):
    """HTTP call failed, returned HTML, or returned an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class IndexNotFoundError(VerkcliError, FileNotFoundError):
    """The camera index file does not exist yet; callers suggest a rebuild."""

    def __init__(self, path):
        super().__init__(f"index not found at {path}")
        self.path = str(path)

    def __str__(self):
        return f"index not found at {self.path}"


class EmptyQueryError(VerkcliError, ValueError):
    """The search query has no alphanumeric tokens."""

    def __init__(self, message: str = "query has no searchable tokens"):
        super().__init__(message)


class InvalidArgumentError(VerkcliError, ValueError):
    """A flag value could not be parsed or is out of range."""
