import json
import logging

import pytest

from dirtransfer.core.logger import get_logger, set_logger
from dirtransfer.monitoring.logging import (
    TransferContextFilter,
    TransferJsonFormatter,
    TransferLogger,
    setup_transfer_logging,
    transfer_context,
)
from dirtransfer.types import TransferDirection, TransferStatus


class MockLogger:
    def __init__(self):
        self.logs = []

    def info(self, msg, *args, **kwargs):
        self.logs.append(("INFO", msg))

    def warning(self, msg, *args, **kwargs):
        self.logs.append(("WARNING", msg))


@pytest.fixture(autouse=True)
def clean_context():
    token = transfer_context.set({})
    yield
    transfer_context.reset(token)


def make_record(msg="hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("dirtransfer.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_custom_logger_roundtrip():
    set_logger(None)
    assert isinstance(get_logger("dirtransfer.test"), logging.Logger)

    mock_logger = MockLogger()
    set_logger(mock_logger)
    try:
        get_logger("anything").info("via custom")
        assert mock_logger.logs == [("INFO", "via custom")]
    finally:
        set_logger(None)


class TestJsonFormatter:
    def test_includes_context_and_extras(self):
        logger = TransferLogger("dirtransfer.test.json")
        logger.set_transfer_context("t-1", TransferDirection.DOWNLOAD, "b", "docs/")
        logger.set_item_context("docs/a.txt")

        entry = json.loads(TransferJsonFormatter().format(make_record(size=100)))

        assert entry["message"] == "hello"
        assert entry["transfer_id"] == "t-1"
        assert entry["direction"] == "download"
        assert entry["bucket"] == "b"
        assert entry["item_key"] == "docs/a.txt"
        assert entry["size"] == 100

    def test_without_context(self):
        entry = json.loads(TransferJsonFormatter().format(make_record()))
        assert "transfer_id" not in entry
        assert entry["level"] == "INFO"


class TestContextFilter:
    def test_defaults_when_no_context(self):
        record = make_record()
        assert TransferContextFilter().filter(record) is True
        assert record.transfer_id == "unknown"
        assert record.item_key == ""

    def test_copies_context(self):
        transfer_context.set({"transfer_id": "t-2", "bucket": "b", "item_key": "k"})
        record = make_record()
        TransferContextFilter().filter(record)
        assert (record.transfer_id, record.bucket, record.item_key) == ("t-2", "b", "k")


class TestTransferLogger:
    def test_run_lifecycle_messages(self, caplog):
        logger = TransferLogger("dirtransfer.test.lifecycle")

        with caplog.at_level(logging.DEBUG, logger="dirtransfer.test.lifecycle"):
            logger.transfer_started("t-3", TransferDirection.DOWNLOAD, "b", "docs/", "/tmp/out")
            logger.listing_completed(2, 300, legacy=True)
            logger.item_started("docs/a.txt", 100)
            logger.item_completed("docs/a.txt", 100, 1.5)
            logger.item_failed("docs/b.txt", OSError("disk full"))
            logger.transfer_finished(
                "t-3", TransferDirection.DOWNLOAD, TransferStatus.FAILED, 12.0, 1, 2
            )

        messages = [r.getMessage() for r in caplog.records]
        assert "s3://b/docs/" in messages[0]
        assert "(legacy listing)" in messages[1]
        assert any("disk full" in m for m in messages)
        finished = caplog.records[-1]
        assert finished.levelno == logging.WARNING
        assert "1/2 files" in finished.getMessage()

    def test_item_context_is_per_task_copy(self):
        logger = TransferLogger("dirtransfer.test.ctx")
        logger.set_transfer_context("t-4", TransferDirection.UPLOAD, "b", "up/")
        logger.set_item_context("up/a")
        assert transfer_context.get()["item_key"] == "up/a"

        logger.clear_transfer_context()
        assert transfer_context.get() == {}


def test_setup_transfer_logging_installs_one_handler():
    try:
        setup_transfer_logging("DEBUG", json_format=True)
        setup_transfer_logging("WARNING", json_format=False)

        root = logging.getLogger("dirtransfer")
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert not isinstance(root.handlers[0].formatter, TransferJsonFormatter)
    finally:
        root = logging.getLogger("dirtransfer")
        for handler in root.handlers[:]:
            root.removeHandler(handler)
        root.setLevel(logging.INFO)
