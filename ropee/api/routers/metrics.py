"""Metrics exposition router.

Serves the gateway's own counters in the Prometheus text format so the
gateway can be scraped by the Prometheus it serves.
"""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ropee.api.dependencies import Metrics

router = APIRouter(tags=["metrics"])


@router.get("/metrics", summary="Prometheus metrics", response_class=Response)
async def metrics_endpoint(metrics: Metrics) -> Response:
    return Response(
        content=generate_latest(metrics.registry),
        media_type=CONTENT_TYPE_LATEST,
    )
