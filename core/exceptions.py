"""Exception types shared across the backend."""


class InverstraError(Exception):
    """Base class for errors raised by the Inverstra backend."""


class ConfigurationError(InverstraError, ValueError):
    """Required configuration is missing or invalid.

    Raised when a collaborator is constructed, before any operation runs.
    """


class DependencyUnavailable(InverstraError):
    """An external client could not be initialised or did not answer in time."""

    def __init__(self, dependency: str, message: str):
        super().__init__(message)
        self.dependency = dependency
        self.message = message
