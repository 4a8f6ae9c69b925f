"""Tests for the error taxonomy."""

import pytest

from ropee.api.exceptions import (
    GatewayAPIException,
    InternalServerException,
)
from ropee.exceptions import (
    BackendError,
    BackendTimeoutError,
    BodyReadError,
    ConstructionError,
    FramingError,
    ProtocolError,
    RopeeError,
    get_http_status,
)


class TestHttpStatus:
    """Test error to status mapping."""

    @pytest.mark.parametrize(
        "error,status",
        [
            (FramingError("empty payload"), 400),
            (ProtocolError("WriteRequest", "truncated"), 400),
            (BodyReadError("connection reset"), 500),
            (ConstructionError("bad url"), 500),
            (BackendError("boom"), 500),
            (BackendTimeoutError("read", 60), 500),
            (ValueError("other"), 500),
        ],
    )
    def test_status(self, error, status):
        assert get_http_status(error) == status


class TestMessages:
    """Test error messages surfaced to callers."""

    def test_framing(self):
        assert str(FramingError("corrupt input")) == "snappy: corrupt input"

    def test_protocol(self):
        error = ProtocolError("ReadRequest", "unexpected EOF")
        assert str(error) == "proto: cannot parse ReadRequest: unexpected EOF"

    def test_backend_message_verbatim(self):
        assert str(BackendError("Search not executed")) == "Search not executed"

    def test_timeout(self):
        assert str(BackendTimeoutError("write", 60.0)) == "write timed out after 60s"

    def test_to_dict(self):
        error = ConstructionError("bad url", backend="splunk")
        assert error.to_dict() == {
            "error_type": "ConstructionError",
            "message": "bad url",
            "context": {"backend": "splunk", "details": "bad url"},
        }
        assert isinstance(error, RopeeError)


class TestAPIExceptions:
    """Test transport exceptions."""

    def test_from_error(self):
        exc = GatewayAPIException.from_error(FramingError("empty payload"))
        assert exc.status_code == 400
        assert exc.detail == "snappy: empty payload"

    def test_internal_server_default(self):
        exc = InternalServerException()
        assert exc.status_code == 500
        assert exc.detail == "Internal server error"
