"""
TransferConfig - Unified configuration for directory transfers.

Holds the knobs shared by every command: concurrency width, download
chunk size, and observability switches. Values can be given directly,
read from ``DIRTRANSFER_*`` environment variables (with .env support),
or loaded from a YAML file with ``${VAR:-default}`` substitution.

Example:
    >>> from dirtransfer import TransferConfig, configure
    >>>
    >>> configure(TransferConfig(concurrent_service_requests=16))
    >>>
    >>> # or from the environment
    >>> config = TransferConfig.from_env()
    >>>
    >>> # or from YAML
    >>> config = TransferConfig.from_file("dirtransfer.yaml")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENT_SERVICE_REQUESTS = 10
DEFAULT_DOWNLOAD_CHUNK_SIZE = 256 * 1024


@dataclass
class TransferConfig:
    """
    Unified configuration for directory transfers.

    Attributes:
        concurrent_service_requests: Maximum number of items in flight when a
            request asks for concurrent transfers
        download_chunk_size: Bytes read per chunk when streaming a download
        region_name: Default AWS region for the S3 store
        endpoint_url: Custom S3 endpoint (MinIO, LocalStack, ...)
        log_level: Level applied by ``setup_transfer_logging``
        json_logs: Emit structured JSON logs
        metrics: Collect Prometheus metrics when prometheus-client is installed
    """

    concurrent_service_requests: int = DEFAULT_CONCURRENT_SERVICE_REQUESTS
    download_chunk_size: int = DEFAULT_DOWNLOAD_CHUNK_SIZE
    region_name: str | None = None
    endpoint_url: str | None = None
    log_level: str = "INFO"
    json_logs: bool = False
    metrics: bool = False

    def __post_init__(self) -> None:
        if self.concurrent_service_requests < 1:
            msg = (
                "concurrent_service_requests must be at least 1, "
                f"got {self.concurrent_service_requests}"
            )
            raise ValueError(msg)
        if self.download_chunk_size < 1:
            msg = f"download_chunk_size must be positive, got {self.download_chunk_size}"
            raise ValueError(msg)

    @classmethod
    def from_env(cls, load_dotenv: bool = True) -> TransferConfig:
        """
        Create configuration from ``DIRTRANSFER_*`` environment variables.

        Environment variables:
            DIRTRANSFER_CONCURRENT_SERVICE_REQUESTS: Concurrency width (default: 10)
            DIRTRANSFER_DOWNLOAD_CHUNK_SIZE: Download chunk size in bytes
            DIRTRANSFER_REGION: AWS region
            DIRTRANSFER_ENDPOINT_URL: Custom S3 endpoint
            DIRTRANSFER_LOG_LEVEL: Logging level (default: INFO)
            DIRTRANSFER_JSON_LOGS: Structured logs (true/false)
            DIRTRANSFER_METRICS_ENABLED: Prometheus metrics (true/false)
        """
        from dirtransfer.core.env import get_env

        env = get_env()
        if load_dotenv:
            env.load()

        return cls(
            concurrent_service_requests=env.get_int(
                "DIRTRANSFER_CONCURRENT_SERVICE_REQUESTS", DEFAULT_CONCURRENT_SERVICE_REQUESTS
            ),
            download_chunk_size=env.get_int(
                "DIRTRANSFER_DOWNLOAD_CHUNK_SIZE", DEFAULT_DOWNLOAD_CHUNK_SIZE
            ),
            region_name=env.get("DIRTRANSFER_REGION"),
            endpoint_url=env.get("DIRTRANSFER_ENDPOINT_URL"),
            log_level=env.get("DIRTRANSFER_LOG_LEVEL", "INFO") or "INFO",
            json_logs=env.get_bool("DIRTRANSFER_JSON_LOGS", False),
            metrics=env.get_bool("DIRTRANSFER_METRICS_ENABLED", False),
        )

    @classmethod
    def from_file(cls, file_path: str | Path, substitute_env: bool = True) -> TransferConfig:
        """
        Load configuration from a YAML file.

        Example:
            # dirtransfer.yaml
            # transfer:
            #   concurrent_service_requests: ${DIRTRANSFER_WIDTH:-8}
            # s3:
            #   region: eu-west-1
            # observability:
            #   logging: {level: DEBUG, json: true}
            #   metrics: {enabled: true}
        """
        import yaml

        from dirtransfer.core.env import get_env

        path = Path(file_path)
        if not path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        with path.open() as f:
            data = yaml.safe_load(f)

        if not data:
            return cls()

        if substitute_env:
            env = get_env()
            env.load()
            data = env.substitute_dict(data)

        transfer_data: dict[str, Any] = data.get("transfer", {}) or {}
        s3_data: dict[str, Any] = data.get("s3", {}) or {}
        obs_data: dict[str, Any] = data.get("observability", {}) or {}
        log_data = obs_data.get("logging", {}) or {}

        return cls(
            concurrent_service_requests=int(
                transfer_data.get(
                    "concurrent_service_requests", DEFAULT_CONCURRENT_SERVICE_REQUESTS
                )
            ),
            download_chunk_size=int(
                transfer_data.get("download_chunk_size", DEFAULT_DOWNLOAD_CHUNK_SIZE)
            ),
            region_name=s3_data.get("region"),
            endpoint_url=s3_data.get("endpoint_url"),
            log_level=str(log_data.get("level", "INFO")),
            json_logs=_as_bool(log_data.get("json", False)),
            metrics=_as_bool((obs_data.get("metrics", {}) or {}).get("enabled", False)),
        )


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


# Global configuration singleton
_global_config: TransferConfig | None = None


def get_config() -> TransferConfig:
    """Get the global transfer configuration."""
    global _global_config
    if _global_config is None:
        _global_config = TransferConfig()
    return _global_config


def configure(config: TransferConfig) -> None:
    """Set the global transfer configuration."""
    global _global_config
    _global_config = config
    logger.info(
        f"dirtransfer configured: concurrent_service_requests={config.concurrent_service_requests}"
    )
