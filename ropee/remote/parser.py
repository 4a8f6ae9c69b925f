"""Parser for remote storage HTTP requests.

This module provides utilities for inspecting remote write/read HTTP requests:
header checks and Basic credential extraction.
"""

import base64
import binascii
import logging
from typing import Mapping

from ropee.remote.codec import CONTENT_ENCODING, CONTENT_TYPE
from ropee.remote.models import Credentials

logger = logging.getLogger(__name__)


class RemoteRequestParser:
    """Parser for Prometheus remote storage HTTP requests.

    Expected request format:
    - Method: POST
    - Content-Type: application/x-protobuf
    - Content-Encoding: snappy
    - X-Prometheus-Remote-Write-Version / X-Prometheus-Remote-Read-Version (optional)
    - Body: Snappy-compressed Protobuf message

    Header mismatches are only logged. The body decides whether a request is
    accepted, so a client that omits headers still gets served.

    Example:
        parser = RemoteRequestParser()
        parser.check_headers(request.headers)
        credentials = parser.basic_auth(request.headers.get("authorization"))
    """

    SUPPORTED_VERSIONS = ["0.1.0", "1.0.0"]

    @staticmethod
    def check_headers(headers: Mapping[str, str]) -> list[str]:
        """Collect warnings about unexpected protocol headers.

        Args:
            headers: HTTP request headers

        Returns:
            list[str]: Human-readable warnings, empty if headers look right
        """
        normalized_headers = {k.lower(): v for k, v in headers.items()}
        warnings = []

        content_type = normalized_headers.get("content-type", "")
        if content_type and CONTENT_TYPE not in content_type:
            warnings.append(
                f"unexpected Content-Type: expected '{CONTENT_TYPE}', got '{content_type}'"
            )

        content_encoding = normalized_headers.get("content-encoding", "")
        if content_encoding and CONTENT_ENCODING not in content_encoding.lower():
            warnings.append(
                f"unexpected Content-Encoding: expected '{CONTENT_ENCODING}', "
                f"got '{content_encoding}'"
            )

        for header in (
            "x-prometheus-remote-write-version",
            "x-prometheus-remote-read-version",
        ):
            version = normalized_headers.get(header, "")
            if version and version not in RemoteRequestParser.SUPPORTED_VERSIONS:
                warnings.append(f"unsupported protocol version {header}={version}")

        for warning in warnings:
            logger.warning(warning)

        return warnings

    @staticmethod
    def basic_auth(authorization: str | None) -> Credentials:
        """Extract HTTP Basic credentials.

        Absent or malformed credentials yield empty strings rather than an
        error; the backend decides whether anonymous access is acceptable.

        Args:
            authorization: Value of the Authorization header, if any

        Returns:
            Credentials: Username and password, possibly empty

        Example:
            >>> RemoteRequestParser.basic_auth("Basic dTpw")
            Credentials(username='u', password='***')
        """
        if not authorization:
            return Credentials()

        scheme, _, param = authorization.partition(" ")
        if scheme.lower() != "basic":
            return Credentials()

        try:
            decoded = base64.b64decode(param.strip(), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return Credentials()

        username, separator, password = decoded.partition(":")
        if not separator:
            return Credentials()

        return Credentials(username=username, password=password)
