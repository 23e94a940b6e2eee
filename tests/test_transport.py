"""Tests for request building and dispatch."""

import json
from decimal import Decimal

import httpx
import pytest
from pydantic import SecretStr

from paga_business.exceptions import AttachmentError
from paga_business.operations import Transport
from paga_business.transport import (
    CUSTOMER_PART,
    SUBSIDIARY_PART,
    BuiltRequest,
    Dispatcher,
    build_json_request,
    build_multipart_request,
    encode_payload,
)
from paga_business.utils import ClientIdentity

SECRET = "sk-test-SECRET-42"
URL = "https://beta.mypaga.com/paga-webservices/business-rest/secured/moneyTransfer"


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def identity():
    """Create a test identity."""
    return ClientIdentity(
        api_key=SecretStr(SECRET),
        principal="BIZ-PRINCIPAL",
        credential=SecretStr("biz-credential"),
        use_test_environment=True,
    )


@pytest.fixture
def photos(tmp_path):
    """Create two small JPEG-ish files."""
    account = tmp_path / "account.jpg"
    account.write_bytes(b"\xff\xd8\xff\xe0ACCOUNT")
    id_photo = tmp_path / "id.jpg"
    id_photo.write_bytes(b"\xff\xd8\xff\xe0IDCARD")
    return account, id_photo


@pytest.fixture
def captured():
    """Requests seen by the mock transport."""
    return []


def mock_transport(captured, status=200, body='{"responseCode":0}'):
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status, text=body)

    return httpx.MockTransport(handler)


# =============================================================================
# JSON BUILD TESTS
# =============================================================================


class TestBuildJsonRequest:
    """Tests for build_json_request."""

    def test_headers(self, identity):
        """Test the five identity/content headers."""
        request = build_json_request("moneyTransfer", URL, "abc123", identity, {"a": "b"})

        assert request.headers == {
            "content-type": "application/json",
            "accept": "application/json",
            "hash": "abc123",
            "principal": "BIZ-PRINCIPAL",
            "credentials": "biz-credential",
        }
        assert request.transport is Transport.JSON
        assert request.url == URL

    def test_body_fields_unmodified(self, identity):
        """Test payload values arrive as given."""
        payload = {
            "referenceNumber": "TXN-1",
            "amount": "100.00",
            "destinationAccount": "08011112222",
        }

        request = build_json_request("moneyTransfer", URL, "h", identity, payload)

        assert json.loads(request.content) == payload

    def test_nulls_and_decimals(self, identity):
        """Test optional fields stay as null and Decimals keep their digits."""
        request = build_json_request(
            "moneyTransfer", URL, "h", identity, {"amount": Decimal("5.10"), "currency": None}
        )

        assert json.loads(request.content) == {"amount": "5.10", "currency": None}

    def test_no_payload(self, identity):
        """Test a parameter-less call has no body."""
        request = build_json_request("getBanks", URL, "h", identity)

        assert request.content is None

    def test_api_key_never_included(self, identity):
        """Test the API key is in neither headers nor body."""
        request = build_json_request(
            "moneyTransfer", URL, "h", identity, {"referenceNumber": "TXN-1"}
        )

        assert SECRET not in request.content.decode()
        assert all(SECRET not in value for value in request.headers.values())

    def test_encode_payload_compact(self):
        assert encode_payload({"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'


# =============================================================================
# MULTIPART BUILD TESTS
# =============================================================================


class TestBuildMultipartRequest:
    """Tests for build_multipart_request."""

    def test_account_photo_only(self, identity, photos):
        """Test one photo gives one attachment and no subsidiary marker."""
        account, _ = photos

        request = build_multipart_request(
            "registerCustomerAccountPhoto",
            URL,
            "h",
            identity,
            {"referenceNumber": "R1", "customerPhoneNumber": "0801"},
            account_photo=account,
        )

        assert [a.name for a in request.attachments] == ["customerAccountPhoto"]
        assert request.attachments[0].content_type == "image/jpeg"
        assert request.is_subsidiary is False
        assert "content-type" not in request.headers

    def test_customer_part_is_single_json_field(self, identity):
        """Test the payload is one JSON-typed part, not split into fields."""
        payload = {"referenceNumber": "R1", "customerPhoneNumber": "0801"}

        request = build_multipart_request(
            "registerCustomerAccountPhoto", URL, "h", identity, payload
        )

        assert len(request.form_fields) == 1
        part = request.form_fields[0]
        assert part.name == CUSTOMER_PART
        assert part.content_type == "application/json"
        assert json.loads(part.value) == payload

    @pytest.mark.parametrize("which", ["none", "account", "id", "both"])
    def test_subsidiary_only_with_both_photos(self, identity, photos, which):
        """Test the isSubsidiary marker requires both photos."""
        account, id_photo = photos

        request = build_multipart_request(
            "registerCustomerIdentification",
            URL,
            "h",
            identity,
            {"referenceNumber": "R1"},
            account_photo=account if which in ("account", "both") else None,
            id_photo=id_photo if which in ("id", "both") else None,
        )

        assert request.is_subsidiary is (which == "both")
        if which == "both":
            marker = [f for f in request.form_fields if f.name == SUBSIDIARY_PART][0]
            assert marker.value == "true"

    def test_missing_photo(self, identity, tmp_path):
        """Test a missing photo fails at build time."""
        missing = tmp_path / "nope.jpg"

        with pytest.raises(AttachmentError) as exc:
            build_multipart_request(
                "registerCustomerIdentification",
                URL,
                "h",
                identity,
                {"referenceNumber": "R1"},
                id_photo=missing,
            )

        assert exc.value.role == "customerIdPhoto"
        assert exc.value.path == str(missing)


# =============================================================================
# DISPATCH TESTS
# =============================================================================


class TestDispatcher:
    """Tests for Dispatcher.send."""

    def test_json_post(self, identity, captured):
        """Test a JSON request is POSTed with its headers and body."""
        dispatcher = Dispatcher(transport=mock_transport(captured))
        request = build_json_request(
            "moneyTransfer", URL, "h", identity, {"referenceNumber": "TXN-1"}
        )

        outcome = dispatcher.send(request)

        assert outcome.http_status == 200
        assert outcome.body == '{"responseCode":0}'
        assert outcome.transport_error is None
        sent = captured[0]
        assert sent.method == "POST"
        assert str(sent.url) == URL
        assert sent.headers["hash"] == "h"
        assert sent.headers["content-type"] == "application/json"
        assert json.loads(sent.content) == {"referenceNumber": "TXN-1"}

    def test_non_200_is_returned(self, identity, captured):
        """Test error statuses are returned, not raised."""
        dispatcher = Dispatcher(transport=mock_transport(captured, 500, "oops"))
        request = build_json_request("getBanks", URL, "h", identity, {})

        outcome = dispatcher.send(request)

        assert outcome.http_status == 500
        assert outcome.body == "oops"

    def test_transport_failure(self, identity):
        """Test connection failures become a transport error outcome."""

        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        dispatcher = Dispatcher(transport=httpx.MockTransport(handler))
        request = build_json_request("getBanks", URL, "h", identity, {})

        outcome = dispatcher.send(request)

        assert outcome.http_status is None
        assert outcome.transport_error == "Connection refused"

    def test_timeout(self, identity):
        """Test timeouts become a transport error outcome."""

        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        dispatcher = Dispatcher(transport=httpx.MockTransport(handler))

        outcome = dispatcher.send(build_json_request("getBanks", URL, "h", identity, {}))

        assert outcome.transport_error == "timed out"

    def test_multipart_parts(self, identity, photos, captured):
        """Test the multipart body carries the customer part and both photos."""
        account, id_photo = photos
        dispatcher = Dispatcher(transport=mock_transport(captured))
        request = build_multipart_request(
            "registerCustomerIdentification",
            URL,
            "h",
            identity,
            {"referenceNumber": "R1"},
            account_photo=account,
            id_photo=id_photo,
        )

        dispatcher.send(request)

        sent = captured[0]
        body = sent.content
        assert sent.headers["content-type"].startswith("multipart/form-data; boundary=")
        assert b'name="customer"' in body
        assert b'{"referenceNumber":"R1"}' in body
        assert b'name="customerAccountPhoto"; filename="account.jpg"' in body
        assert b'name="customerIdPhoto"; filename="id.jpg"' in body
        assert b"ACCOUNT" in body and b"IDCARD" in body
        assert b'name="isSubsidiary"' in body
        assert body.count(b"Content-Type: image/jpeg") == 2
        assert SECRET.encode() not in body

    def test_unreadable_photo_not_sent(self, identity, photos, captured):
        """Test a photo that vanished after building fails before sending."""
        account, _ = photos
        dispatcher = Dispatcher(transport=mock_transport(captured))
        request = build_multipart_request(
            "registerCustomerAccountPhoto",
            URL,
            "h",
            identity,
            {"referenceNumber": "R1"},
            account_photo=account,
        )
        account.unlink()

        with pytest.raises(AttachmentError) as exc:
            dispatcher.send(request)

        assert exc.value.role == "customerAccountPhoto"
        assert captured == []

    def test_empty_request(self, captured):
        """Test a bare request with no body is still sent."""
        dispatcher = Dispatcher(transport=mock_transport(captured))
        request = BuiltRequest(
            operation="getBanks", url=URL, transport=Transport.JSON, headers={"hash": "h"}
        )

        outcome = dispatcher.send(request)

        assert outcome.http_status == 200
        assert captured[0].content == b""
