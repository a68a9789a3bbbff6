"""
Throttled fail-fast execution of a batch of independent transfer units.

Items are launched in enumeration order, at most ``max_concurrency`` at a
time. The first real failure stops the scheduling of further items, while
units already in flight are left to finish on their own and their outcomes
are still collected. Only the caller's cancellation token aborts the wait.

States:
    LISTING -> SCHEDULING -> DRAINING -> SUCCEEDED | FAILED | CANCELLED
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from dirtransfer.core.cancellation import CancellationToken
from dirtransfer.core.exceptions import (
    DirTransferError,
    ListingError,
    TransferCancelledError,
)
from dirtransfer.core.logger import get_logger
from dirtransfer.types import ExecutorState

logger = get_logger(__name__)

ListItems = Callable[[], Awaitable[Iterable[Any]]]
LaunchUnit = Callable[[Any, CancellationToken], Awaitable[Any]]


class ConcurrencySlots:
    """
    Counting permits limiting the number of units in flight.

    Tracks how many permits were handed out and given back, so a run can
    prove that every acquisition was matched by exactly one release.
    """

    def __init__(self, limit: int):
        if limit < 1:
            msg = f"Concurrency limit must be at least 1, got {limit}"
            raise ValueError(msg)
        self.limit = limit
        self._semaphore = asyncio.Semaphore(limit)
        self.acquired = 0
        self.released = 0

    @property
    def in_use(self) -> int:
        return self.acquired - self.released

    async def acquire(self, cancel_token: CancellationToken) -> None:
        """
        Wait for a free permit, giving up if ``cancel_token`` trips first.

        Raises:
            TransferCancelledError: If the token trips before a permit is free
        """
        cancel_token.raise_if_cancelled()

        if not self._semaphore.locked():
            await self._semaphore.acquire()
            self.acquired += 1
            return

        acquire_task = asyncio.ensure_future(self._semaphore.acquire())
        cancel_task = asyncio.ensure_future(cancel_token.wait())
        try:
            await asyncio.wait({acquire_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            cancel_task.cancel()
            self._abandon(acquire_task)
            raise
        cancel_task.cancel()

        if not acquire_task.done():
            self._abandon(acquire_task)
            raise TransferCancelledError(reason=cancel_token.reason)

        self.acquired += 1

    def release(self) -> None:
        if self.released >= self.acquired:
            msg = "Concurrency slot released more times than it was acquired"
            raise RuntimeError(msg)
        self.released += 1
        self._semaphore.release()

    def _abandon(self, acquire_task: asyncio.Future) -> None:
        """Give back a permit obtained by an acquisition nobody will use."""
        if not acquire_task.done():
            acquire_task.cancel()
        elif not acquire_task.cancelled() and acquire_task.exception() is None:
            self._semaphore.release()


class ThrottledFailFastExecutor:
    """
    Runs one transfer unit per item under a concurrency limit.

    Each unit receives a run-scoped token linked to the caller's token. The
    first unit that fails with anything other than a cancellation trips the
    run token: nothing else is scheduled, but siblings already running keep
    going until they settle. The run then raises that first failure.

    Results and failures are recorded in settlement order, never in
    scheduling order.

    Example:
        >>> executor = ThrottledFailFastExecutor(max_concurrency=4)
        >>> results = await executor.execute(list_items, download_one, token)
    """

    def __init__(self, max_concurrency: int = 1):
        self.max_concurrency = max_concurrency
        self.slots = ConcurrencySlots(max_concurrency)
        self.state = ExecutorState.PENDING
        self.results: list[Any] = []
        self.errors: list[BaseException] = []
        self.cancelled_items = 0
        self.scheduled = 0
        self.total_items = 0
        self.run_token: CancellationToken | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def serial(self) -> bool:
        return self.max_concurrency == 1

    @property
    def first_error(self) -> BaseException | None:
        """First non-cancellation failure by settlement order."""
        return self.errors[0] if self.errors else None

    @property
    def in_flight(self) -> int:
        """Units launched and not yet settled."""
        return len(self._tasks)

    async def wait_in_flight(self) -> None:
        """
        Wait for units still running after a cancelled run returned.

        Those units observe the tripped run token and settle on their own.
        """
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def execute(
        self,
        list_items: ListItems,
        launch: LaunchUnit,
        cancel_token: CancellationToken | None = None,
    ) -> list[Any]:
        """
        List the items, then transfer them with fail-fast semantics.

        Args:
            list_items: Coroutine function producing the items to transfer
            launch: ``launch(item, run_token)`` transfers one item
            cancel_token: Caller's cancellation token

        Returns:
            Unit results in settlement order

        Raises:
            ListingError: Enumeration failed, nothing was scheduled
            TransferCancelledError: The caller cancelled before any failure settled
            Exception: The first unit failure, as raised by the unit
        """
        cancel_token = cancel_token or CancellationToken()
        self.run_token = cancel_token.linked()

        items = await self._list(list_items)

        pending: set[asyncio.Task] = set()
        try:
            self.state = ExecutorState.SCHEDULING
            await self._schedule(items, launch, cancel_token, pending)

            self.state = ExecutorState.DRAINING
            await self._drain(pending, cancel_token)
        except TransferCancelledError:
            if self.first_error is not None:
                self.state = ExecutorState.FAILED
                raise self.first_error from None
            self.state = ExecutorState.CANCELLED
            logger.info(f"Run cancelled with {len(pending)} unit(s) still in flight")
            raise
        except asyncio.CancelledError:
            self.run_token.cancel("run task cancelled")
            self._cancel_all_tasks(pending)
            self.state = ExecutorState.CANCELLED
            raise

        if self.first_error is not None:
            self.state = ExecutorState.FAILED
            if len(self.errors) > 1:
                logger.warning(
                    f"{len(self.errors) - 1} additional unit failure(s) after the first"
                )
            raise self.first_error

        self.state = ExecutorState.SUCCEEDED
        return list(self.results)

    async def _list(self, list_items: ListItems) -> list[Any]:
        self.state = ExecutorState.LISTING
        try:
            items = list(await list_items())
        except TransferCancelledError:
            self.state = ExecutorState.CANCELLED
            raise
        except DirTransferError:
            self.state = ExecutorState.FAILED
            raise
        except asyncio.CancelledError:
            self.state = ExecutorState.CANCELLED
            raise
        except Exception as e:
            self.state = ExecutorState.FAILED
            msg = f"Listing failed: {e}"
            raise ListingError(msg) from e

        self.total_items = len(items)
        return items

    async def _schedule(
        self,
        items: list[Any],
        launch: LaunchUnit,
        cancel_token: CancellationToken,
        pending: set[asyncio.Task],
    ) -> None:
        """Launch units in order until items run out or the run token trips."""
        for item in items:
            await self.slots.acquire(cancel_token)

            if cancel_token.is_cancelled:
                self.slots.release()
                raise TransferCancelledError(reason=cancel_token.reason)

            if self.run_token.is_cancelled:
                # A unit already failed: stop scheduling, surface its error later.
                self.slots.release()
                logger.info(
                    f"Stopped scheduling after a failure: "
                    f"{self.scheduled}/{len(items)} unit(s) launched"
                )
                break

            task = asyncio.create_task(self._run_unit(item, launch))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            pending.add(task)
            self.scheduled += 1

    async def _drain(self, pending: set[asyncio.Task], cancel_token: CancellationToken) -> None:
        """Wait for launched units one settlement at a time."""
        while pending:
            cancel_token.raise_if_cancelled()

            cancel_wait = asyncio.ensure_future(cancel_token.wait())
            try:
                done, _ = await asyncio.wait(
                    pending | {cancel_wait}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                cancel_wait.cancel()

            pending.difference_update(done)

    async def _run_unit(self, item: Any, launch: LaunchUnit) -> None:
        try:
            result = await launch(item, self.run_token)
        except TransferCancelledError:
            self.cancelled_items += 1
        except Exception as e:
            self._record_failure(e)
        else:
            self.results.append(result)
        finally:
            self.slots.release()

    def _record_failure(self, error: BaseException) -> None:
        self.errors.append(error)
        if len(self.errors) == 1:
            logger.warning(f"Unit failed, no further items will be scheduled: {error}")
            self.run_token.cancel(f"{type(error).__name__}: {error}")

    def _cancel_all_tasks(self, tasks: set[asyncio.Task]) -> None:
        """Cancel all incomplete tasks."""
        for task in tasks:
            if not task.done():
                task.cancel()
