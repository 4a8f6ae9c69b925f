from __future__ import annotations

from prometheus_client import REGISTRY, CollectorRegistry, Counter


class GatewayMetrics:
    """Prometheus metrics for the remote storage gateway.

    Counters count accepted requests: a request is counted once its body has
    been decoded, whether or not the backend call then succeeds.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry if registry is not None else REGISTRY

        self.write_requests_total = Counter(
            "ropee_write_requests_total",
            "Total number of decoded remote write requests.",
            registry=self.registry,
        )
        self.read_requests_total = Counter(
            "ropee_read_requests_total",
            "Total number of decoded remote read requests.",
            registry=self.registry,
        )


_metrics: GatewayMetrics | None = None


def get_metrics() -> GatewayMetrics:
    """Return the process-wide metrics, registering them on first use."""
    global _metrics
    if _metrics is None:
        _metrics = GatewayMetrics()
    return _metrics
