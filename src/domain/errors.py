"""
Error taxonomy for verification email delivery.

Reactive-path errors are caught and turned into DeliveryResult values;
manual-path errors surface to the caller as CallableError subclasses.
"""

from typing import Any, Dict, List, Optional


class VerificationEmailError(Exception):
    """Base class for all delivery pipeline errors."""
    pass


class ConfigurationError(VerificationEmailError):
    """Raised when a required provider credential is absent."""
    pass


class ValidationError(VerificationEmailError):
    """Raised when required input fields (email, code) are missing."""
    pass


class ProviderError(VerificationEmailError):
    """
    Raised when the email provider rejects or fails a delivery attempt.

    Attributes:
        message: Provider-supplied message (or a transport error description)
        field: Offending field reported by the provider, if any
        status_code: HTTP status code, if a response was received
        errors: Full list of provider error entries
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        status_code: Optional[int] = None,
        errors: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.status_code = status_code
        self.errors = errors or []


class PersistenceError(VerificationEmailError):
    """Raised when writing a delivery outcome back onto the record fails."""

    def __init__(self, message: str, email: str):
        super().__init__(message)
        self.email = email


class CallableError(VerificationEmailError):
    """
    Structured, caller-visible error for the manual callable endpoint.

    Attributes:
        code: Error code ("invalid-argument" or "internal")
        message: Human-readable message
        details: Optional failure detail (e.g. provider message)
    """
    code = 'internal'
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the error body returned to callers."""
        error = {
            'code': self.code,
            'message': self.message,
        }
        if self.details:
            error['details'] = self.details
        return {'error': error}


class InvalidArgumentError(CallableError, ValidationError):
    """Manual call made without email or code."""
    code = 'invalid-argument'
    status_code = 400


class InternalError(CallableError):
    """Manual call failed after validation (configuration or provider)."""
    code = 'internal'
    status_code = 500
