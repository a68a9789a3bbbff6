"""
Transfer monitoring and observability utilities

Quick Start:
    >>> from dirtransfer.monitoring import setup_transfer_logging

    # Set up structured logging
    >>> logger = setup_transfer_logging(json_format=True)

    # Enable Prometheus metrics (requires prometheus-client)
    >>> from dirtransfer.monitoring.prometheus import PrometheusMetrics, start_metrics_server
    >>> start_metrics_server(port=8000)
    >>> metrics = PrometheusMetrics()
"""

from .logging import (
    TransferContextFilter,
    TransferJsonFormatter,
    TransferLogger,
    setup_transfer_logging,
    transfer_logger,
)
from .prometheus import (
    PrometheusMetrics,
    get_default_metrics,
    is_prometheus_available,
    start_metrics_server,
)

__all__ = [
    "PrometheusMetrics",
    "TransferContextFilter",
    "TransferJsonFormatter",
    "TransferLogger",
    "get_default_metrics",
    "is_prometheus_available",
    "setup_transfer_logging",
    "start_metrics_server",
    "transfer_logger",
]
