"""Remote storage router for the ropee gateway.

This module provides the Prometheus remote write and remote read endpoints.
Each request is decoded, counted, forwarded to a backend client and, for
reads, re-encoded in the same wire protocol.

Prometheus configuration:
```yaml
remote_write:
  - url: http://localhost:9970/write
remote_read:
  - url: http://localhost:9970/read
    basic_auth:
      username: splunk_user
      password: splunk_password
```
"""

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import PlainTextResponse

from ropee.api.dependencies import (
    CallerCredentials,
    GatewaySettings,
    Metrics,
    ReadClientFactory,
    WriteClient,
    build_backend_handle,
)
from ropee.api.exceptions import GatewayAPIException, InternalServerException
from ropee.backend import BackendClient, call_with_deadline
from ropee.exceptions import BackendError, BodyReadError, ConstructionError, DecodeError
from ropee.logging_config import get_logger, log_error
from ropee.remote import CONTENT_ENCODING, CONTENT_TYPE, RemoteCodec, RemoteRequestParser

logger = get_logger(__name__)

router = APIRouter(tags=["remote"])

WRITE_ACK = "ok"


async def read_body(request: Request, endpoint: str) -> bytes:
    """Ingest the full request body.

    Raises:
        GatewayAPIException: 500 if the body cannot be read
    """
    try:
        return await request.body()
    except Exception as e:
        error = BodyReadError(str(e) or type(e).__name__)
        log_error(logger, error, stage="read_body", endpoint=endpoint)
        raise GatewayAPIException.from_error(error) from e


@router.post(
    "/write",
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    summary="Prometheus remote write endpoint",
    description="""
Accepts a Snappy-compressed Protobuf WriteRequest and forwards it to the
backend with the operator-configured credentials. Caller credentials are
ignored on this endpoint.
""",
)
async def remote_write(
    request: Request,
    settings: GatewaySettings,
    metrics: Metrics,
    write_client: WriteClient,
) -> PlainTextResponse:
    """Prometheus remote write endpoint.

    Returns:
        ``ok`` once the backend accepted the batch

    Raises:
        GatewayAPIException: 400 for malformed bodies, 500 for body read,
            unavailable client or backend failures
    """
    compressed_data = await read_body(request, "write")
    RemoteRequestParser.check_headers(request.headers)

    try:
        batch = RemoteCodec.decode_write_request(compressed_data)
    except DecodeError as e:
        log_error(logger, e, stage="decode", endpoint="write", size=len(compressed_data))
        raise GatewayAPIException.from_error(e) from e

    metrics.write_requests_total.inc()

    if settings.debug:
        logger.debug("remote_write_decoded", **RemoteCodec.get_statistics(batch))

    if write_client is None:
        error = ConstructionError("write backend client unavailable")
        log_error(logger, error, stage="construct", endpoint="write")
        raise GatewayAPIException.from_error(error)

    try:
        await call_with_deadline(
            write_client.write(batch), settings.timeout_seconds, "write"
        )
    except BackendError as e:
        log_error(logger, e, stage="forward", endpoint="write")
        raise GatewayAPIException.from_error(e) from e

    return PlainTextResponse(WRITE_ACK)


@router.post(
    "/read",
    status_code=status.HTTP_200_OK,
    summary="Prometheus remote read endpoint",
    response_class=Response,
    description="""
Accepts a Snappy-compressed Protobuf ReadRequest, queries the backend with
the caller's Basic credentials and answers with a Snappy-compressed Protobuf
ReadResponse whose result sets follow the order of the queries.
""",
)
async def remote_read(
    request: Request,
    settings: GatewaySettings,
    metrics: Metrics,
    client_factory: ReadClientFactory,
    credentials: CallerCredentials,
) -> Response:
    """Prometheus remote read endpoint.

    Returns:
        Snappy-compressed ReadResponse with protobuf content headers

    Raises:
        GatewayAPIException: 400 for malformed bodies, 500 for body read,
            client construction, backend or encoding failures
    """
    compressed_data = await read_body(request, "read")
    RemoteRequestParser.check_headers(request.headers)

    try:
        query = RemoteCodec.decode_read_request(compressed_data)
    except DecodeError as e:
        log_error(logger, e, stage="decode", endpoint="read", size=len(compressed_data))
        raise GatewayAPIException.from_error(e) from e

    metrics.read_requests_total.inc()

    if settings.debug:
        logger.debug(
            "remote_read_query",
            query=repr(query),
            authenticated=not credentials.is_anonymous,
        )

    handle = build_backend_handle(settings, credentials)
    try:
        client: BackendClient = client_factory(handle)
    except Exception as e:
        error = e if isinstance(e, ConstructionError) else ConstructionError(str(e))
        log_error(logger, error, stage="construct", endpoint="read")
        raise GatewayAPIException.from_error(error) from e

    try:
        async with client:
            result = await call_with_deadline(
                client.read(query), settings.timeout_seconds, "read"
            )
    except BackendError as e:
        log_error(logger, e, stage="forward", endpoint="read")
        raise GatewayAPIException.from_error(e) from e

    if len(result.results) != len(query.queries):
        error = BackendError(
            f"backend returned {len(result.results)} result sets "
            f"for {len(query.queries)} queries",
            operation="read",
        )
        log_error(logger, error, stage="forward", endpoint="read")
        raise GatewayAPIException.from_error(error)

    try:
        body = RemoteCodec.encode_read_response(result)
    except Exception as e:
        log_error(logger, e, stage="encode", endpoint="read")
        raise InternalServerException(str(e)) from e

    return Response(
        content=body,
        media_type=CONTENT_TYPE,
        headers={"Content-Encoding": CONTENT_ENCODING},
    )
