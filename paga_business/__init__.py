"""
Paga Business Client - Python SDK

Call the Paga Business REST API (customer registration, money transfer,
merchant payment, account balance, ...) with signed requests.

Quick Start:
    from paga_business import PagaBusinessClient

    client = (
        PagaBusinessClient.builder()
        .set_api_key(api_key)
        .set_principal(principal)
        .set_credential(credential)
        .set_test(True)
        .build()
    )

    # Returns the raw JSON response text
    banks = client.get_banks("REF-0001")

    # Or get a classified result without raising on HTTP errors
    result = client.execute("accountBalance", {"referenceNumber": "REF-0002"})
    if result.ok:
        print(result.parsed())

Configuration:
    Set these environment variables or pass to the builder:
    - PAGA_API_KEY: Client API key (used only to sign requests)
    - PAGA_PRINCIPAL: Business principal
    - PAGA_CREDENTIAL: Business credential
    - PAGA_USE_TEST: Use the test environment
    - PAGA_VERIFY_TLS: Verify certificates (test environment may disable)
    - PAGA_TIMEOUT: Connect and read timeout in seconds

Every operation call is synchronous and never retried automatically.
"""

from .core import (
    # Main client classes
    PagaBusinessClient,
    PagaBusinessClientBuilder,
    PagaConfig,
    # Convenience functions
    create_client,
)
from .exceptions import (
    AttachmentError,
    # Configuration errors
    ConfigurationError,
    # Network errors
    NetworkError,
    # Base
    PagaBusinessError,
    RemoteError,
    # Request assembly errors
    SignatureError,
    TransportError,
    UnknownOperationError,
)
from .operations import (
    OPERATIONS,
    OperationDescriptor,
    Transport,
    get_operation,
)
from .transport import (
    BuiltRequest,
    Dispatcher,
    build_json_request,
    build_multipart_request,
)
from .utils import (
    # Data models
    ClientIdentity,
    DispatchOutcome,
    OperationResult,
    OutcomeKind,
    # Utilities
    RequestLogger,
    classify_outcome,
    derive_signature,
    resolve_endpoint,
)

__version__ = "0.1.0"
__all__ = [
    # Version
    "__version__",
    # Main client
    "PagaBusinessClient",
    "PagaBusinessClientBuilder",
    "PagaConfig",
    "create_client",
    # Operations
    "OPERATIONS",
    "OperationDescriptor",
    "Transport",
    "get_operation",
    # Data models
    "ClientIdentity",
    "DispatchOutcome",
    "OperationResult",
    "OutcomeKind",
    "BuiltRequest",
    # Base exceptions
    "PagaBusinessError",
    # Configuration exceptions
    "ConfigurationError",
    "UnknownOperationError",
    # Request assembly exceptions
    "SignatureError",
    "AttachmentError",
    # Network exceptions
    "NetworkError",
    "TransportError",
    "RemoteError",
    # Building blocks
    "Dispatcher",
    "build_json_request",
    "build_multipart_request",
    "derive_signature",
    "resolve_endpoint",
    "classify_outcome",
    "RequestLogger",
]
