from typing import Optional


class ConfigurationError(Exception):
    """Raised when settings or clients cannot be built from configuration."""


class RemoteServiceError(Exception):
    """Base class for failures reported by the remote language model service."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class TransientServiceError(RemoteServiceError):
    """Overload, rate limiting or a 5xx answer; worth retrying."""

    def __init__(self, code: Optional[int], message: str):
        super().__init__(message, code=code)


class FatalServiceError(RemoteServiceError):
    """Any other remote failure (bad request, auth, blocked content)."""


class ServiceTimeoutError(RemoteServiceError):
    """The remote call did not answer within the configured timeout."""

    def __init__(self, timeout: float):
        super().__init__(f"Remote call timed out after {timeout:g}s")
        self.timeout = timeout
