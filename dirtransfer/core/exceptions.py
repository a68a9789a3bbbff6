"""
Unified error hierarchy for directory transfers.

All errors raised by the package inherit from DirTransferError,
so callers can catch transfer-related failures in one place.
"""

from typing import Any


class DirTransferError(Exception):
    """
    Base exception for all directory transfer operations.

    Carries an optional ``details`` mapping that is rendered
    alongside the message.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        details = {k: v for k, v in self.details.items() if v is not None}
        if details:
            return f"{self.message} ({details})"
        return self.message


class ValidationError(DirTransferError):
    """
    Request or path rejected on the client before any transfer.

    Raised when:
    - A required request field is missing
    - A remote key maps outside the local directory
    - The local directory collides with an existing file
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: str | None = None,
        path: str | None = None,
        **details,
    ):
        super().__init__(message, details={"field": field, "path": path, **details})
        self.field = field
        self.path = path


class ListingError(DirTransferError):
    """
    Remote enumeration failed.

    Fatal for the run: no item is scheduled.
    """

    def __init__(
        self,
        message: str = "Listing failed",
        bucket: str | None = None,
        prefix: str | None = None,
        **details,
    ):
        super().__init__(message, details={"bucket": bucket, "prefix": prefix, **details})
        self.bucket = bucket
        self.prefix = prefix


class ListingNotSupportedError(ListingError):
    """
    The endpoint rejected the listing operation as not implemented.

    Triggers the legacy marker-based listing.
    """

    def __init__(self, message: str = "Listing operation not supported", **details):
        super().__init__(message, **details)


class ItemTransferError(DirTransferError):
    """
    A single item's transfer failed.

    Stops the scheduling of further items; siblings already in
    flight are allowed to finish.
    """

    def __init__(
        self,
        message: str = "Item transfer failed",
        key: str | None = None,
        cause: BaseException | None = None,
        **details,
    ):
        super().__init__(
            message,
            details={
                "key": key,
                "cause": f"{type(cause).__name__}: {cause}" if cause else None,
                **details,
            },
        )
        self.key = key
        self.cause = cause


class TransferCancelledError(DirTransferError):
    """
    The run or an item was cancelled.

    Never treated as an item failure.
    """

    def __init__(self, message: str = "Transfer cancelled", key: str | None = None, **details):
        super().__init__(message, details={"key": key, **details})
        self.key = key


class MissingDependencyError(DirTransferError):
    """
    Raised when an optional dependency is not installed.

    Carries the pip command that installs it.
    """

    INSTALL_COMMANDS = {
        "aioboto3": "pip install dirtransfer[aws]",
        "prometheus_client": "pip install dirtransfer[metrics]",
        "click": "pip install dirtransfer[cli]",
    }

    def __init__(self, package: str, feature: str | None = None):
        self.package = package
        self.feature = feature

        install_cmd = self.INSTALL_COMMANDS.get(package, f"pip install {package}")

        if feature:
            message = f"Missing dependency '{package}' required for {feature}. Install with: {install_cmd}"
        else:
            message = f"Missing dependency '{package}'. Install with: {install_cmd}"

        super().__init__(message, details={"package": package})
