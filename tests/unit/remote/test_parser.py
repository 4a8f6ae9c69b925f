"""Tests for remote request inspection."""

import base64

import pytest

from ropee.remote.models import Credentials
from ropee.remote.parser import RemoteRequestParser


def basic(value: str) -> str:
    return "Basic " + base64.b64encode(value.encode("utf-8")).decode("ascii")


class TestBasicAuth:
    """Test Basic credential extraction."""

    def test_valid_credentials(self):
        assert RemoteRequestParser.basic_auth(basic("admin:changeme")) == Credentials(
            "admin", "changeme"
        )

    def test_password_may_contain_colon(self):
        credentials = RemoteRequestParser.basic_auth(basic("admin:a:b"))
        assert credentials == Credentials("admin", "a:b")

    def test_scheme_is_case_insensitive(self):
        header = basic("u:p").replace("Basic", "basic")
        assert RemoteRequestParser.basic_auth(header) == Credentials("u", "p")

    @pytest.mark.parametrize(
        "header",
        [
            None,
            "",
            "Bearer abc",
            "Basic !!!notbase64",
            "Basic " + base64.b64encode(b"no-colon").decode("ascii"),
            "Basic " + base64.b64encode(b"\xff\xfe:x").decode("ascii"),
        ],
    )
    def test_absent_or_malformed_yields_empty(self, header):
        assert RemoteRequestParser.basic_auth(header) == Credentials()


class TestCheckHeaders:
    """Test protocol header warnings."""

    def test_expected_headers(self):
        headers = {
            "Content-Type": "application/x-protobuf",
            "Content-Encoding": "snappy",
            "X-Prometheus-Remote-Write-Version": "0.1.0",
        }
        assert RemoteRequestParser.check_headers(headers) == []

    def test_missing_headers_are_accepted(self):
        assert RemoteRequestParser.check_headers({}) == []

    def test_unexpected_headers_warn(self):
        headers = {
            "content-type": "application/json",
            "content-encoding": "gzip",
            "x-prometheus-remote-read-version": "9.9.9",
        }
        warnings = RemoteRequestParser.check_headers(headers)
        assert len(warnings) == 3
        assert any("Content-Type" in w for w in warnings)
        assert any("9.9.9" in w for w in warnings)
