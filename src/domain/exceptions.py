"""
Exception types for the forwarding pipeline.

Every failure that ends an invocation is a ForwardingError subclass, so the
pipeline can turn it into a failed ForwardingResult without catching
programming errors.
"""

from typing import Optional


class ForwardingError(Exception):
    """Base class for failures that abort the forwarding pipeline."""
    pass


class ConfigurationError(ForwardingError):
    """Raised when forwarding configuration is invalid or missing."""
    pass


class InvalidEventError(ForwardingError):
    """Raised when the trigger event is not a single SES receipt record."""
    pass


class FetchError(ForwardingError):
    """Raised when the raw message cannot be read from S3."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code


class SendError(ForwardingError):
    """Raised when SES rejects the forwarded message."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code
