"""
Prometheus metrics integration for dirtransfer.

Quick Start:
    >>> from dirtransfer.monitoring.prometheus import PrometheusMetrics, start_metrics_server
    >>>
    >>> start_metrics_server(port=8000)
    >>> metrics = PrometheusMetrics()
    >>> utility = TransferUtility(store, metrics=metrics)

Requirements:
    pip install prometheus-client
"""

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from dirtransfer.types import TransferDirection, TransferStatus

try:
    from prometheus_client import REGISTRY, Counter, Gauge, Histogram, start_http_server

    PROMETHEUS_AVAILABLE = True
except ImportError:  # pragma: no cover
    PROMETHEUS_AVAILABLE = False
    REGISTRY: Any = None  # type: ignore[no-redef]
    Counter: Any = None  # type: ignore[no-redef]
    Gauge: Any = None  # type: ignore[no-redef]
    Histogram: Any = None  # type: ignore[no-redef]
    start_http_server: Any = None  # type: ignore[no-redef]


logger = logging.getLogger(__name__)


class PrometheusMetrics:
    """
    Prometheus-compatible metrics collector for directory transfers.

    Exposes the following metrics:
        - dirtransfer_runs_total: Counter of runs by direction and status
        - dirtransfer_items_total: Counter of settled items by direction and outcome
        - dirtransfer_bytes_total: Counter of bytes moved by direction
        - dirtransfer_run_duration_seconds: Histogram of run durations
        - dirtransfer_items_in_flight: Gauge of items currently transferring
    """

    def __init__(self, prefix: str = "dirtransfer", registry: Any = None):
        """
        Initialize Prometheus metrics.

        Args:
            prefix: Metric name prefix (default: "dirtransfer")
            registry: Collector registry (default: the global registry)
        """
        if not PROMETHEUS_AVAILABLE:
            logger.warning(
                "prometheus-client not installed. Metrics will not be collected. "
                "Install with: pip install prometheus-client"
            )
            self._enabled = False
            return

        self._enabled = True
        self._prefix = prefix
        registry = registry if registry is not None else REGISTRY

        self._runs_total = Counter(
            f"{prefix}_runs_total",
            "Total directory transfer runs",
            ["direction", "status"],
            registry=registry,
        )

        self._items_total = Counter(
            f"{prefix}_items_total",
            "Total settled item transfers",
            ["direction", "outcome"],
            registry=registry,
        )

        self._bytes_total = Counter(
            f"{prefix}_bytes_total",
            "Total bytes transferred",
            ["direction"],
            registry=registry,
        )

        self._run_duration = Histogram(
            f"{prefix}_run_duration_seconds",
            "Directory transfer run duration in seconds",
            ["direction"],
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 300.0, 900.0],
            registry=registry,
        )

        self._in_flight = Gauge(
            f"{prefix}_items_in_flight",
            "Number of items currently transferring",
            ["direction"],
            registry=registry,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def record_run(
        self, direction: "TransferDirection", status: "TransferStatus", duration: float
    ) -> None:
        """
        Record a finished run.

        Args:
            direction: Download or upload
            status: Terminal status of the run
            duration: Run duration in seconds
        """
        if not self._enabled:
            return

        self._runs_total.labels(direction=direction.value, status=status.value).inc()
        self._run_duration.labels(direction=direction.value).observe(duration)

    def item_started(self, direction: "TransferDirection") -> None:
        if not self._enabled:
            return
        self._in_flight.labels(direction=direction.value).inc()

    def item_finished(self, direction: "TransferDirection", outcome: str) -> None:
        """
        Record a settled item.

        Args:
            direction: Download or upload
            outcome: "succeeded", "failed" or "cancelled"
        """
        if not self._enabled:
            return
        self._in_flight.labels(direction=direction.value).dec()
        self._items_total.labels(direction=direction.value, outcome=outcome).inc()

    def record_bytes(self, direction: "TransferDirection", count: int) -> None:
        if not self._enabled or count <= 0:
            return
        self._bytes_total.labels(direction=direction.value).inc(count)


def start_metrics_server(port: int = 8000, addr: str = "0.0.0.0") -> None:
    """
    Start a Prometheus HTTP metrics server.

    Args:
        port: Port to listen on (default: 8000)
        addr: Address to bind to (default: 0.0.0.0 for all interfaces)
    """
    if not PROMETHEUS_AVAILABLE:
        logger.error(
            "Cannot start metrics server: prometheus-client not installed. "
            "Install with: pip install prometheus-client"
        )
        return

    start_http_server(port, addr)
    logger.info(f"Prometheus metrics server started on port {port}")


def is_prometheus_available() -> bool:
    """Check if prometheus-client is installed."""
    return PROMETHEUS_AVAILABLE


_default_metrics: PrometheusMetrics | None = None


def get_default_metrics() -> PrometheusMetrics:
    """Shared collector registered on the global registry."""
    global _default_metrics
    if _default_metrics is None:
        _default_metrics = PrometheusMetrics()
    return _default_metrics
