"""
dirtransfer CLI Application - Built with Click.

Commands:
    dirtransfer download BUCKET PREFIX LOCAL_DIR   # prefix -> local directory
    dirtransfer upload LOCAL_DIR BUCKET            # local directory -> prefix

Exit codes:
    0   Every item transferred
    1   The run failed (validation, listing or an item failure)
    130 The run was cancelled (Ctrl+C)
"""

import asyncio
import dataclasses
import signal
import sys
from collections.abc import Awaitable, Callable
from contextlib import contextmanager

import click

from dirtransfer.core.cancellation import CancellationToken
from dirtransfer.core.config import TransferConfig, configure
from dirtransfer.monitoring.logging import setup_transfer_logging
from dirtransfer.monitoring.prometheus import start_metrics_server
from dirtransfer.stores.base import ObjectStore
from dirtransfer.stores.s3 import S3ObjectStore
from dirtransfer.types import DirectoryProgress, DirectoryTransferResult, TransferStatus
from dirtransfer.utility import TransferUtility

try:
    from rich.console import Console
    from rich.progress import (
        BarColumn,
        DownloadColumn,
        Progress,
        TextColumn,
        TimeRemainingColumn,
        TransferSpeedColumn,
    )
    from rich.table import Table

    console: Console | None = Console(stderr=True)
except ImportError:
    console = None

EXIT_FAILED = 1
EXIT_CANCELLED = 130

DATETIME_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S"]


def create_store(config: TransferConfig) -> ObjectStore:
    """Object store used by the commands."""
    return S3ObjectStore(
        region_name=config.region_name,
        endpoint_url=config.endpoint_url,
        chunk_size=config.download_chunk_size,
    )


def _load_config(
    config_path: str | None,
    region: str | None,
    endpoint_url: str | None,
    max_concurrency: int | None,
    log_level: str | None,
    json_logs: bool,
    metrics_port: int | None = None,
) -> TransferConfig:
    config = TransferConfig.from_file(config_path) if config_path else TransferConfig.from_env()

    overrides = {}
    if region:
        overrides["region_name"] = region
    if endpoint_url:
        overrides["endpoint_url"] = endpoint_url
    if max_concurrency:
        overrides["concurrent_service_requests"] = max_concurrency
    if log_level:
        overrides["log_level"] = log_level
    if json_logs:
        overrides["json_logs"] = True
    if metrics_port:
        overrides["metrics"] = True

    config = dataclasses.replace(config, **overrides)
    configure(config)
    setup_transfer_logging(config.log_level, json_format=config.json_logs)
    if metrics_port:
        start_metrics_server(metrics_port)
    return config


@contextmanager
def _progress_display(description: str):
    """Yield a progress callback backed by a rich progress bar when available."""
    if console is None:
        yield None
        return

    with Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("{task.fields[files]}"),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        console=console,
        transient=True,
    ) as progress:
        task_id = progress.add_task(description, total=None, files="")

        def on_progress(snapshot: DirectoryProgress) -> None:
            progress.update(
                task_id,
                total=snapshot.total_bytes,
                completed=snapshot.transferred_bytes,
                files=f"{snapshot.files_transferred}/{snapshot.total_files} files",
            )

        yield on_progress


async def _run_cancellable(
    work: Callable[[CancellationToken], Awaitable[DirectoryTransferResult]],
) -> DirectoryTransferResult:
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel, "interrupted")
    except (NotImplementedError, RuntimeError):  # pragma: no cover
        pass
    try:
        return await work(token)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):  # pragma: no cover
            pass


def _report(result: DirectoryTransferResult) -> None:
    if console is not None:
        table = Table(title=f"Directory {result.direction.value}", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("Status", result.status.value)
        if result.progress is not None:
            table.add_row(
                "Files", f"{result.progress.files_transferred}/{result.progress.total_files}"
            )
            table.add_row(
                "Bytes", f"{result.progress.transferred_bytes}/{result.progress.total_bytes}"
            )
        table.add_row("Duration", f"{result.duration_seconds:.2f}s")
        if result.error is not None:
            table.add_row("Error", f"[red]{result.error}[/red]")
        console.print(table)
    else:
        click.echo(f"{result.direction.value}: {result.status.value}")
        if result.progress is not None:
            click.echo(str(result.progress))
        if result.error is not None:
            click.echo(f"Error: {result.error}", err=True)

    if result.status == TransferStatus.FAILED:
        sys.exit(EXIT_FAILED)
    if result.status == TransferStatus.CANCELLED:
        sys.exit(EXIT_CANCELLED)


# ============================================================================
# CLI Group
# ============================================================================


@click.group()
@click.version_option(version="0.1.0", prog_name="dirtransfer")
def cli():
    """
    dirtransfer - Transfer whole directories to and from S3.

    \b
    Commands:
      download   Download every object under a prefix
      upload     Upload the files of a local directory
    """


def _common_options(func):
    options = [
        click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
                     help="YAML configuration file"),
        click.option("--region", help="AWS region"),
        click.option("--endpoint-url", help="Custom S3-compatible endpoint"),
        click.option("--max-concurrency", type=click.IntRange(min=1),
                     help="Concurrent requests when --concurrent is set"),
        click.option("--log-level",
                     type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
                     help="Logging level"),
        click.option("--json-logs", is_flag=True, help="Structured JSON logs"),
        click.option("--metrics-port", type=int, help="Expose Prometheus metrics on this port"),
        click.option("--concurrent", is_flag=True, help="Transfer files concurrently"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@cli.command()
@click.argument("bucket")
@click.argument("prefix")
@click.argument("local_dir", type=click.Path(file_okay=False))
@click.option("--modified-since", type=click.DateTime(formats=DATETIME_FORMATS),
              help="Only objects modified after this time (UTC)")
@click.option("--unmodified-since", type=click.DateTime(formats=DATETIME_FORMATS),
              help="Only objects modified at or before this time (UTC)")
@click.option("--disable-slash-correction", is_flag=True,
              help="Use PREFIX verbatim instead of appending '/'")
@_common_options
def download(
    bucket,
    prefix,
    local_dir,
    modified_since,
    unmodified_since,
    disable_slash_correction,
    config_path,
    region,
    endpoint_url,
    max_concurrency,
    log_level,
    json_logs,
    metrics_port,
    concurrent,
):
    """
    Download every object under PREFIX in BUCKET into LOCAL_DIR.

    \b
    Examples:
        dirtransfer download my-bucket docs/ ./docs
        dirtransfer download my-bucket logs/2024-0 ./logs --disable-slash-correction
    """
    config = _load_config(
        config_path, region, endpoint_url, max_concurrency, log_level, json_logs, metrics_port
    )

    async def work(token: CancellationToken) -> DirectoryTransferResult:
        with _progress_display(f"s3://{bucket}/{prefix}") as on_progress:
            async with create_store(config) as store:
                return await TransferUtility(store, config).download_directory(
                    bucket,
                    prefix,
                    local_dir,
                    concurrent=concurrent,
                    modified_since=modified_since,
                    unmodified_since=unmodified_since,
                    disable_slash_correction=disable_slash_correction,
                    progress_callback=on_progress,
                    cancel_token=token,
                )

    _report(asyncio.run(_run_cancellable(work)))


@cli.command()
@click.argument("local_dir", type=click.Path(exists=True, file_okay=False))
@click.argument("bucket")
@click.option("--key-prefix", default="", help="Prefix prepended to every key")
@click.option("--pattern", "search_pattern", default="*", help="File name pattern (fnmatch)")
@click.option("--no-recursive", "recursive", is_flag=True, flag_value=False, default=True,
              help="Only upload files directly under LOCAL_DIR")
@_common_options
def upload(
    local_dir,
    bucket,
    key_prefix,
    search_pattern,
    recursive,
    config_path,
    region,
    endpoint_url,
    max_concurrency,
    log_level,
    json_logs,
    metrics_port,
    concurrent,
):
    """
    Upload the files of LOCAL_DIR into BUCKET.

    \b
    Examples:
        dirtransfer upload ./docs my-bucket --key-prefix docs/
        dirtransfer upload ./logs my-bucket --pattern "*.log" --no-recursive
    """
    config = _load_config(
        config_path, region, endpoint_url, max_concurrency, log_level, json_logs, metrics_port
    )

    async def work(token: CancellationToken) -> DirectoryTransferResult:
        with _progress_display(local_dir) as on_progress:
            async with create_store(config) as store:
                return await TransferUtility(store, config).upload_directory(
                    local_dir,
                    bucket,
                    key_prefix,
                    search_pattern=search_pattern,
                    recursive=recursive,
                    concurrent=concurrent,
                    progress_callback=on_progress,
                    cancel_token=token,
                )

    _report(asyncio.run(_run_cancellable(work)))


if __name__ == "__main__":
    cli()
