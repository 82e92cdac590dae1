"""Exceptions raised by the refresh pipeline and its collaborators."""


class ForecasterError(Exception):
    """Base class for forecaster errors."""


class TransportError(ForecasterError):
    """Raised when a provider request fails (network, timeout, non-2xx)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(ForecasterError):
    """Raised when a provider response does not have the expected shape."""


class CommitFailure(ForecasterError):
    """Raised when the forecast snapshot could not be replaced in storage."""


class RefreshInProgress(ForecasterError):
    """Raised when a refresh is triggered while another is still running."""
