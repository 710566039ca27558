"""Application-specific exceptions for av1watch.

The dashboard core never lets these escape into rendering: they are raised
only at the edges (reading the daemon's job files, loading configuration)
and absorbed by the layer that calls them.

Exception Hierarchy:
    Av1WatchError (base)
    ├── FeedError
    │   ├── FeedUnavailableError
    │   └── JobParseError
    └── ConfigurationError
"""

from pathlib import Path


class Av1WatchError(Exception):
    """Base exception for all av1watch errors.

    All application-specific exceptions inherit from this class,
    allowing callers to catch all av1watch errors with a single handler.
    """


class FeedError(Av1WatchError):
    """Base exception for job feed errors."""


class FeedUnavailableError(FeedError):
    """Raised when the job feed cannot produce a snapshot at all.

    Attributes:
        path: The job-state directory that was read, if any.
        message: Human-readable error description.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        path: Path | None = None,
        message: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.path = path
        self.cause = cause
        if message is None:
            message = f"Job feed unavailable at {path}" if path else "Job feed unavailable"
        self.message = message
        if cause:
            self.message = f"{self.message}: {cause}"
        super().__init__(self.message)


class JobParseError(FeedError):
    """Raised when a single job record cannot be parsed.

    Attributes:
        path: The job file that could not be parsed.
        message: Human-readable error description.
    """

    def __init__(self, path: Path, message: str | None = None) -> None:
        self.path = path
        self.message = message or f"Failed to parse job file {path}"
        super().__init__(self.message)


class ConfigurationError(Av1WatchError):
    """Raised when there is a configuration error.

    Attributes:
        parameter: The configuration parameter that is invalid.
        message: Human-readable error description.
    """

    def __init__(self, parameter: str, message: str | None = None) -> None:
        self.parameter = parameter
        self.message = message or f"Invalid configuration for '{parameter}'"
        super().__init__(self.message)
