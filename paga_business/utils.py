"""
Paga Business Client - Utility Functions

Helpers for:
- Client identity and per-call data models
- Request signature derivation
- Environment endpoint resolution
- Outcome classification
- Logging utilities
"""

import hashlib
import json
import logging
import os
from collections.abc import Iterable, Mapping, Sequence, Sized
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from .exceptions import RemoteError, SignatureError, TransportError

TEST_BASE_URL = "https://beta.mypaga.com"
LIVE_BASE_URL = "https://www.mypaga.com"

_TRUTHY = ("true", "1", "yes")


# =============================================================================
# DATA MODELS
# =============================================================================


class ClientIdentity(BaseModel):
    """
    Who the client calls as, and which environment it talks to.

    Nothing is validated here: empty fields are caught by the client
    right before the first request is built.
    """

    api_key: SecretStr = Field(
        default=SecretStr(""), description="Shared secret used only for signing"
    )
    principal: str = Field(default="", description="Caller identity header")
    credential: SecretStr = Field(
        default=SecretStr(""), description="Caller password header"
    )
    use_test_environment: bool = Field(default=False)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_env(cls) -> "ClientIdentity":
        """Read the identity from PAGA_* environment variables."""
        return cls(
            api_key=SecretStr(os.environ.get("PAGA_API_KEY", "")),
            principal=os.environ.get("PAGA_PRINCIPAL", ""),
            credential=SecretStr(os.environ.get("PAGA_CREDENTIAL", "")),
            use_test_environment=os.environ.get("PAGA_USE_TEST", "").lower() in _TRUTHY,
        )


class DispatchOutcome(BaseModel):
    """Raw result of sending one request."""

    http_status: int | None = None
    body: str | None = None
    transport_error: str | None = None


class OutcomeKind(str, Enum):
    """Classification of a dispatch outcome."""

    SUCCESS = "success"
    HTTP_ERROR = "http_error"
    TRANSPORT_ERROR = "transport_error"


class OperationResult(BaseModel):
    """
    Classified outcome of one operation call.

    A SUCCESS only means HTTP 200. The service can still report a
    business failure inside the body, so callers should check the
    response code in the parsed payload.
    """

    operation: str
    url: str
    kind: OutcomeKind
    status_code: int | None = None
    body: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        """True when the service answered with HTTP 200."""
        return self.kind is OutcomeKind.SUCCESS

    def parsed(self) -> Any:
        """Parse the response body as JSON."""
        if self.body is None:
            raise ValueError(f"{self.operation} returned no body")
        return json.loads(self.body)

    def raise_for_outcome(self) -> str:
        """
        Return the body on success, raise otherwise.

        Raises:
            TransportError: If no HTTP response was received.
            RemoteError: If the status was not 200.
        """
        if self.kind is OutcomeKind.TRANSPORT_ERROR:
            raise TransportError(self.url, self.error or "unknown transport failure")
        if self.kind is OutcomeKind.HTTP_ERROR:
            raise RemoteError(self.operation, self.status_code or 0, self.body)
        return self.body or ""


# =============================================================================
# SIGNATURE DERIVATION
# =============================================================================


def resolve_field(params: Mapping[str, Any], path: str) -> Any:
    """
    Look up a dotted field path in the request parameters.

    Path segments walk nested mappings by key and lists by index. The
    special segment "#" yields the length of the list reached so far.
    Missing keys and out-of-range indexes resolve to None.
    """
    value: Any = params
    for segment in path.split("."):
        if value is None:
            return None
        if segment == "#":
            return len(value) if isinstance(value, Sized) else None
        if isinstance(value, Mapping):
            value = value.get(segment)
        elif isinstance(value, Sequence) and not isinstance(value, str):
            try:
                value = value[int(segment)]
            except (IndexError, ValueError):
                return None
        else:
            return None
    return value


def stringify_signature_value(field: str, value: Any) -> str:
    """
    Convert one signature value to its string form.

    None becomes the empty string. Strings pass through, integers and
    Decimals use their decimal form.

    Raises:
        SignatureError: For booleans, floats and any other type.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    # bool is an int subclass
    if isinstance(value, bool):
        raise SignatureError(field, "bool")
    if isinstance(value, (int, Decimal)):
        return str(value)
    raise SignatureError(field, type(value).__name__)


def collect_signature_input(
    params: Mapping[str, Any], signature_fields: Iterable[str]
) -> list[str]:
    """Pick the signature values out of the parameters, in order."""
    return [
        stringify_signature_value(path, resolve_field(params, path))
        for path in signature_fields
    ]


def derive_signature(ordered_values: Sequence[str], secret: str) -> str:
    """
    Hash the ordered values followed by the secret.

    Args:
        ordered_values: Signature values in wire-contract order.
        secret: The client API key.

    Returns:
        Lowercase hex SHA-512 digest (128 characters).
    """
    message = "".join(ordered_values) + secret
    return hashlib.sha512(message.encode("utf-8")).hexdigest()


# =============================================================================
# ENDPOINTS & OUTCOMES
# =============================================================================


def resolve_endpoint(use_test: bool, path: str) -> str:
    """Join the environment base URL and an operation path."""
    base = TEST_BASE_URL if use_test else LIVE_BASE_URL
    return base + path


def classify_outcome(operation: str, url: str, outcome: DispatchOutcome) -> OperationResult:
    """
    Classify a dispatch outcome.

    A transport failure wins over anything else. Otherwise HTTP 200 is
    a success and every other status is an HTTP error carrying the body.
    """
    if outcome.transport_error is not None or outcome.http_status is None:
        return OperationResult(
            operation=operation,
            url=url,
            kind=OutcomeKind.TRANSPORT_ERROR,
            error=outcome.transport_error or "no response received",
        )

    kind = OutcomeKind.SUCCESS if outcome.http_status == 200 else OutcomeKind.HTTP_ERROR
    return OperationResult(
        operation=operation,
        url=url,
        kind=kind,
        status_code=outcome.http_status,
        body=outcome.body,
    )


# =============================================================================
# LOGGING UTILITIES
# =============================================================================


class RequestLogger:
    """
    Structured logger for signed requests.

    Never logs the API key, the credential or request bodies. Signature
    hashes are shortened and response bodies are logged by size only.
    """

    def __init__(self, logger_name: str = "paga_business.requests") -> None:
        """
        Initialize the request logger.

        Args:
            logger_name: Name for the logger instance.
        """
        self.logger = logging.getLogger(logger_name)

    def log_dispatch(self, operation: str, url: str, signature: str) -> None:
        """Log a request about to be sent."""
        self.logger.info(
            "Dispatching request",
            extra={
                "event": "request_dispatch",
                "operation": operation,
                "url": url,
                "hash_prefix": self._short_hash(signature),
            },
        )

    def log_result(self, result: OperationResult) -> None:
        """Log a classified result at a level matching its kind."""
        if result.kind is OutcomeKind.SUCCESS:
            self.logger.info(
                "Request succeeded",
                extra={
                    "event": "request_success",
                    "operation": result.operation,
                    "status_code": result.status_code,
                    "body_length": len(result.body or ""),
                },
            )
        elif result.kind is OutcomeKind.HTTP_ERROR:
            self.logger.warning(
                "Request rejected",
                extra={
                    "event": "request_http_error",
                    "operation": result.operation,
                    "status_code": result.status_code,
                    "body_length": len(result.body or ""),
                },
            )
        else:
            self.logger.warning(
                "Request failed",
                extra={
                    "event": "request_transport_error",
                    "operation": result.operation,
                    "url": result.url,
                    "error": result.error,
                },
            )

    def log_attachment_error(self, operation: str, role: str, path: str) -> None:
        """Log an unusable attachment."""
        self.logger.warning(
            "Attachment unavailable",
            extra={
                "event": "attachment_error",
                "operation": operation,
                "role": role,
                "path": path,
            },
        )

    @staticmethod
    def _short_hash(signature: str) -> str:
        return signature[:8] + "..." if signature else ""
