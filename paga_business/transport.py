"""
Paga Business Client - Request Assembly and Dispatch

Builds signed JSON or multipart requests and sends them with httpx.

Building is a pure step: it resolves headers and encodes the JSON
payload, and only checks that referenced photos exist. Photos are
opened when the request is sent and closed again before send() returns,
whatever the result.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from contextlib import ExitStack
from decimal import Decimal
from pathlib import Path
from typing import Any, BinaryIO

import httpx
from pydantic import BaseModel, Field

from .exceptions import AttachmentError
from .operations import ACCOUNT_PHOTO_PART, ID_PHOTO_PART, Transport
from .utils import ClientIdentity, DispatchOutcome

logger = logging.getLogger("paga_business")

JSON_CONTENT_TYPE = "application/json"
JPEG_CONTENT_TYPE = "image/jpeg"

CUSTOMER_PART = "customer"
SUBSIDIARY_PART = "isSubsidiary"


# =============================================================================
# REQUEST MODELS
# =============================================================================


class FormField(BaseModel):
    """A non-file multipart part."""

    name: str
    value: str
    content_type: str = JSON_CONTENT_TYPE


class Attachment(BaseModel):
    """A file part, read from disk at send time."""

    name: str = Field(description="Form part name")
    path: Path
    content_type: str = JPEG_CONTENT_TYPE


class BuiltRequest(BaseModel):
    """A fully assembled request, ready to send."""

    operation: str
    url: str
    transport: Transport
    headers: dict[str, str]
    content: bytes | None = Field(default=None, description="Encoded JSON body")
    form_fields: list[FormField] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)

    @property
    def is_subsidiary(self) -> bool:
        """Whether the subsidiary marker part is attached."""
        return any(f.name == SUBSIDIARY_PART for f in self.form_fields)


# =============================================================================
# REQUEST BUILDING
# =============================================================================


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_payload(payload: dict[str, Any]) -> str:
    """Encode a request payload the way the service expects it."""
    return json.dumps(payload, separators=(",", ":"), default=_json_default)


def _identity_headers(signature: str, identity: ClientIdentity) -> dict[str, str]:
    return {
        "accept": JSON_CONTENT_TYPE,
        "hash": signature,
        "principal": identity.principal,
        "credentials": identity.credential.get_secret_value(),
    }


def build_json_request(
    operation: str,
    url: str,
    signature: str,
    identity: ClientIdentity,
    payload: dict[str, Any] | None = None,
) -> BuiltRequest:
    """
    Build a JSON POST request.

    Args:
        operation: Operation name, kept for logging and errors.
        url: Fully resolved endpoint URL.
        signature: Request hash.
        identity: Client identity supplying principal and credential.
        payload: Request parameters, or None for an empty body.
    """
    headers = {"content-type": JSON_CONTENT_TYPE, **_identity_headers(signature, identity)}
    content = encode_payload(payload).encode("utf-8") if payload is not None else None
    return BuiltRequest(
        operation=operation,
        url=url,
        transport=Transport.JSON,
        headers=headers,
        content=content,
    )


def _checked_attachment(operation: str, role: str, path: str | Path) -> Attachment:
    file_path = Path(path)
    if not file_path.is_file():
        raise AttachmentError(
            str(path),
            role,
            message=f"{operation}: attachment {role} does not exist: {path}",
        )
    return Attachment(name=role, path=file_path)


def build_multipart_request(
    operation: str,
    url: str,
    signature: str,
    identity: ClientIdentity,
    payload: dict[str, Any] | None = None,
    account_photo: str | Path | None = None,
    id_photo: str | Path | None = None,
) -> BuiltRequest:
    """
    Build a multipart POST request.

    The payload travels as a single JSON part named "customer". Each
    photo becomes a JPEG part. The isSubsidiary marker is added only
    when both photos are present.

    Raises:
        AttachmentError: If a referenced photo does not exist.
    """
    form_fields: list[FormField] = []
    if payload is not None:
        form_fields.append(FormField(name=CUSTOMER_PART, value=encode_payload(payload)))

    attachments: list[Attachment] = []
    if account_photo is not None:
        attachments.append(_checked_attachment(operation, ACCOUNT_PHOTO_PART, account_photo))
    if id_photo is not None:
        attachments.append(_checked_attachment(operation, ID_PHOTO_PART, id_photo))

    if account_photo is not None and id_photo is not None:
        form_fields.append(FormField(name=SUBSIDIARY_PART, value="true"))

    # httpx sets the multipart content-type with its boundary
    return BuiltRequest(
        operation=operation,
        url=url,
        transport=Transport.MULTIPART,
        headers=_identity_headers(signature, identity),
        form_fields=form_fields,
        attachments=attachments,
    )


# =============================================================================
# DISPATCH
# =============================================================================


class Dispatcher:
    """
    Sends built requests synchronously.

    A fresh httpx.Client is used per request, so a Dispatcher holds no
    connection state and can be shared between threads.
    """

    def __init__(
        self,
        *,
        verify_tls: bool = True,
        timeout: float = 120.0,
        follow_redirects: bool = True,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            verify_tls: Verify server certificates.
            timeout: Connect and read/write timeout in seconds.
            follow_redirects: Follow HTTP redirects.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self.verify_tls = verify_tls
        self.timeout = timeout
        self.follow_redirects = follow_redirects
        self._transport = transport

    def send(self, request: BuiltRequest) -> DispatchOutcome:
        """
        POST the request and capture the result.

        Non-2xx statuses are returned, not raised.

        Raises:
            AttachmentError: If a photo cannot be opened. Nothing is sent.
        """
        with ExitStack() as stack:
            files = self._open_parts(request, stack)
            try:
                with httpx.Client(
                    verify=self.verify_tls,
                    timeout=httpx.Timeout(self.timeout, connect=self.timeout),
                    follow_redirects=self.follow_redirects,
                    transport=self._transport,
                ) as http:
                    response = http.post(
                        request.url,
                        headers=request.headers,
                        content=request.content,
                        files=files or None,
                    )
            except httpx.RequestError as e:
                logger.debug(f"Transport failure for {request.operation}: {e!r}")
                return DispatchOutcome(transport_error=str(e) or e.__class__.__name__)

        return DispatchOutcome(http_status=response.status_code, body=response.text)

    @staticmethod
    def _open_parts(
        request: BuiltRequest, stack: ExitStack
    ) -> list[tuple[str, tuple[str | None, bytes | BinaryIO, str]]]:
        files: list[tuple[str, tuple[str | None, bytes | BinaryIO, str]]] = [
            (f.name, (None, f.value.encode("utf-8"), f.content_type))
            for f in request.form_fields
        ]
        for attachment in request.attachments:
            try:
                handle = stack.enter_context(attachment.path.open("rb"))
            except OSError as e:
                raise AttachmentError(str(attachment.path), attachment.name) from e
            files.append(
                (attachment.name, (attachment.path.name, handle, attachment.content_type))
            )
        return files
