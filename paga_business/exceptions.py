"""
Paga Business Client - Exception Classes

Typed exceptions for the signed request pipeline. Callers can tell a
misconfigured client apart from a bad attachment, an unreachable server,
or a remote rejection, and decide what to do about each.

None of these errors ever carry the API key or the credential.
"""

from typing import Any


class PagaBusinessError(Exception):
    """Base exception for all Paga Business client errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error description.
            details: Optional structured details for debugging.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, details={self.details})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(PagaBusinessError):
    """
    Raised when the client is misconfigured.

    Check the identity fields passed to the builder (or the PAGA_*
    environment variables) and the TLS settings.
    """

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize with configuration context.

        Args:
            message: Description of the configuration issue.
            config_key: The problematic configuration key.
            details: Optional additional details.
        """
        self.config_key = config_key
        full_details = details or {}
        if config_key:
            full_details["config_key"] = config_key
        super().__init__(message, full_details)


class UnknownOperationError(PagaBusinessError):
    """Raised when an operation name is not in the operation table."""

    def __init__(
        self,
        operation: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.operation = operation
        full_details = details or {}
        full_details["operation"] = operation
        super().__init__(message or f"Unknown operation: {operation}", full_details)


# =============================================================================
# REQUEST ASSEMBLY ERRORS
# =============================================================================


class SignatureError(PagaBusinessError):
    """
    Raised when a value cannot be turned into signature input.

    Booleans and floats have no agreed string form on the remote side,
    so they must be passed as explicit strings.
    """

    def __init__(
        self,
        field: str,
        value_type: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize with the offending field.

        Args:
            field: Signature field path that produced the value.
            value_type: Python type name of the rejected value.
            message: Optional custom message.
            details: Optional additional details.
        """
        self.field = field
        self.value_type = value_type
        default_msg = (
            f"Cannot sign field {field!r}: {value_type} values must be "
            "passed as explicit strings"
        )
        full_details = details or {}
        full_details["field"] = field
        full_details["value_type"] = value_type
        super().__init__(message or default_msg, full_details)


class AttachmentError(PagaBusinessError):
    """
    Raised when a photo attachment cannot be used.

    Always raised before the request leaves the process, so a failed
    attachment never results in a half-sent registration.
    """

    def __init__(
        self,
        path: str,
        role: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize with attachment context.

        Args:
            path: File system path that was referenced.
            role: Form part name the file was meant for.
            message: Optional custom message.
            details: Optional additional details.
        """
        self.path = path
        self.role = role
        default_msg = f"Attachment {role} is not readable: {path}"
        full_details = details or {}
        full_details["path"] = path
        full_details["role"] = role
        super().__init__(message or default_msg, full_details)


# =============================================================================
# NETWORK & REMOTE ERRORS
# =============================================================================


class NetworkError(PagaBusinessError):
    """Base class for errors raised while talking to the remote service."""

    pass


class TransportError(NetworkError):
    """
    Raised when the request did not produce an HTTP response.

    Connection refused, TLS handshake failures and timeouts all end up
    here. Nothing is retried: a money transfer may or may not have been
    accepted, so check its status by reference number before resending.
    """

    def __init__(
        self,
        url: str,
        reason: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.url = url
        self.reason = reason
        default_msg = f"Transport failure calling {url}: {reason}"
        full_details = details or {}
        full_details["url"] = url
        full_details["reason"] = reason
        super().__init__(message or default_msg, full_details)


class RemoteError(NetworkError):
    """
    Raised when the service answers with a non-200 status.

    The body is kept verbatim so the caller can read the service's own
    error payload.
    """

    def __init__(
        self,
        operation: str,
        status_code: int,
        body: str | None,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize with the remote response.

        Args:
            operation: Operation name that was called.
            status_code: HTTP status returned by the service.
            body: Raw response body, if any.
            message: Optional custom message.
            details: Optional additional details.
        """
        self.operation = operation
        self.status_code = status_code
        self.body = body
        default_msg = f"{operation} failed with HTTP {status_code}"
        full_details = details or {}
        full_details["operation"] = operation
        full_details["status_code"] = status_code
        super().__init__(message or default_msg, full_details)
