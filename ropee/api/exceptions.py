"""FastAPI exception hierarchy for the ropee gateway.

Remote storage clients read error bodies as plain text, so these exceptions
carry the message that ends up verbatim in the response body.
"""

from fastapi import HTTPException, status

from ropee.exceptions import get_http_status


class GatewayAPIException(HTTPException):
    """Base API exception for ropee.

    All custom API exceptions should inherit from this class.
    Rendered as a ``text/plain`` body holding ``detail``.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: dict | None = None,
    ):
        """Initialize API exception.

        Args:
            status_code: HTTP status code
            detail: Error message detail
            headers: Optional HTTP headers
        """
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    @classmethod
    def from_error(cls, error: Exception) -> "GatewayAPIException":
        """Translate a domain error into its transport status and message."""
        return cls(status_code=get_http_status(error), detail=str(error))


class InternalServerException(GatewayAPIException):
    """Internal server error (500).

    Raised for body read, client construction and backend failures.
    """

    def __init__(self, detail: str = "Internal server error"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
        )
