"""
Tests for the throttled fail-fast executor and its concurrency slots
"""

import asyncio

import pytest

from dirtransfer.core.cancellation import CancellationToken
from dirtransfer.core.exceptions import ListingError, TransferCancelledError, ValidationError
from dirtransfer.execution.throttled import ConcurrencySlots, ThrottledFailFastExecutor
from dirtransfer.types import ExecutorState


def items_of(*items):
    async def list_items():
        return list(items)

    return list_items


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


class TestConcurrencySlots:
    def test_rejects_zero_limit(self):
        with pytest.raises(ValueError):
            ConcurrencySlots(0)

    def test_over_release(self):
        slots = ConcurrencySlots(1)
        with pytest.raises(RuntimeError):
            slots.release()

    @pytest.mark.asyncio
    async def test_acquire_and_release_are_counted(self):
        slots = ConcurrencySlots(2)
        token = CancellationToken()

        await slots.acquire(token)
        await slots.acquire(token)
        assert slots.in_use == 2

        slots.release()
        slots.release()
        assert (slots.acquired, slots.released, slots.in_use) == (2, 2, 0)

    @pytest.mark.asyncio
    async def test_acquire_with_cancelled_token(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(TransferCancelledError):
            await ConcurrencySlots(1).acquire(token)

    @pytest.mark.asyncio
    async def test_blocked_acquire_gives_up_on_cancel(self):
        slots = ConcurrencySlots(1)
        token = CancellationToken()
        await slots.acquire(token)

        waiter = asyncio.create_task(slots.acquire(token))
        await settle()
        token.cancel("stop")

        with pytest.raises(TransferCancelledError):
            await waiter

        slots.release()
        assert slots.acquired == slots.released == 1
        # the abandoned acquisition did not keep a permit
        await asyncio.wait_for(slots.acquire(CancellationToken()), timeout=1)


class TestSuccessfulRuns:
    @pytest.mark.asyncio
    async def test_serial_run_keeps_order(self):
        executor = ThrottledFailFastExecutor(max_concurrency=1)

        async def launch(item, token):
            await asyncio.sleep(0)
            return item * 10

        results = await executor.execute(items_of(1, 2, 3), launch)

        assert results == [10, 20, 30]
        assert executor.serial is True
        assert executor.state == ExecutorState.SUCCEEDED
        assert executor.slots.acquired == executor.slots.released == 3

    @pytest.mark.asyncio
    async def test_empty_listing_succeeds(self):
        executor = ThrottledFailFastExecutor(max_concurrency=4)

        async def launch(item, token):
            raise AssertionError("nothing to launch")

        assert await executor.execute(items_of(), launch) == []
        assert executor.state == ExecutorState.SUCCEEDED
        assert executor.total_items == 0

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        executor = ThrottledFailFastExecutor(max_concurrency=3)
        in_flight = 0
        peak = 0

        async def launch(item, token):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            for _ in range(3):
                await asyncio.sleep(0)
            in_flight -= 1
            return item

        results = await executor.execute(items_of(*range(10)), launch)

        assert sorted(results) == list(range(10))
        assert peak == 3
        assert executor.slots.in_use == 0

    @pytest.mark.asyncio
    async def test_results_are_in_settlement_order(self):
        executor = ThrottledFailFastExecutor(max_concurrency=2)
        first_may_finish = asyncio.Event()

        async def launch(item, token):
            if item == "slow":
                await first_may_finish.wait()
            else:
                first_may_finish.set()
            return item

        results = await executor.execute(items_of("slow", "fast"), launch)
        assert results == ["fast", "slow"]

    @pytest.mark.asyncio
    async def test_unit_cancellation_is_not_a_failure(self):
        executor = ThrottledFailFastExecutor(max_concurrency=2)

        async def launch(item, token):
            if item == 2:
                raise TransferCancelledError(key=str(item))
            return item

        results = await executor.execute(items_of(1, 2, 3), launch)

        assert sorted(results) == [1, 3]
        assert executor.cancelled_items == 1
        assert executor.errors == []
        assert not executor.run_token.is_cancelled


class TestFailFast:
    @pytest.mark.asyncio
    async def test_first_failure_stops_scheduling_but_siblings_finish(self):
        executor = ThrottledFailFastExecutor(max_concurrency=2)
        gate = asyncio.Event()
        launched = []

        async def launch(item, token):
            launched.append(item)
            if item == 0:
                await gate.wait()
                return "sibling done"
            if item == 1:
                gate.set()
                raise ValueError("item 1 broke")
            return item

        with pytest.raises(ValueError, match="item 1 broke"):
            await executor.execute(items_of(*range(6)), launch)

        assert launched == [0, 1]
        assert executor.scheduled == 2
        assert executor.results == ["sibling done"]
        assert executor.state == ExecutorState.FAILED
        assert executor.slots.acquired == executor.slots.released

    @pytest.mark.parametrize("fail_at", range(5))
    @pytest.mark.asyncio
    async def test_slots_balance_whatever_item_fails(self, fail_at):
        executor = ThrottledFailFastExecutor(max_concurrency=2)

        async def launch(item, token):
            await asyncio.sleep(0)
            if item == fail_at:
                raise ValidationError(f"bad item {item}")
            return item

        with pytest.raises(ValidationError):
            await executor.execute(items_of(*range(5)), launch)

        assert executor.slots.acquired == executor.slots.released
        assert executor.slots.in_use == 0
        assert fail_at not in executor.results

    @pytest.mark.asyncio
    async def test_first_error_is_by_settlement_not_scheduling(self):
        executor = ThrottledFailFastExecutor(max_concurrency=3)
        gate = asyncio.Event()

        async def launch(item, token):
            if item == 0:
                await gate.wait()
                raise ValueError("scheduled first, settled second")
            if item == 1:
                gate.set()
                raise ValueError("scheduled second, settled first")
            return item

        with pytest.raises(ValueError, match="settled first"):
            await executor.execute(items_of(0, 1, 2), launch)

        assert len(executor.errors) == 2

    @pytest.mark.asyncio
    async def test_units_see_the_run_token_trip(self):
        executor = ThrottledFailFastExecutor(max_concurrency=2)
        seen = {}

        async def launch(item, token):
            if item == 0:
                await token.wait()
                seen["reason"] = token.reason
                token.raise_if_cancelled(str(item))
            raise OSError("disk full")

        caller = CancellationToken()
        with pytest.raises(OSError):
            await executor.execute(items_of(0, 1), launch, caller)

        assert "disk full" in seen["reason"]
        assert executor.cancelled_items == 1
        assert not caller.is_cancelled


class TestListing:
    @pytest.mark.asyncio
    async def test_unexpected_listing_error_is_wrapped(self):
        executor = ThrottledFailFastExecutor()

        async def list_items():
            raise RuntimeError("connection reset")

        async def launch(item, token):
            raise AssertionError("must not run")

        with pytest.raises(ListingError, match="connection reset"):
            await executor.execute(list_items, launch)
        assert executor.state == ExecutorState.FAILED
        assert executor.slots.acquired == 0

    @pytest.mark.asyncio
    async def test_package_listing_error_passes_through(self):
        executor = ThrottledFailFastExecutor()
        error = ListingError("denied", bucket="b")

        async def list_items():
            raise error

        with pytest.raises(ListingError) as exc_info:
            await executor.execute(list_items, None)
        assert exc_info.value is error


class TestCancellation:
    @pytest.mark.asyncio
    async def test_caller_cancel_ends_run(self):
        executor = ThrottledFailFastExecutor(max_concurrency=1)
        caller = CancellationToken()

        async def launch(item, token):
            await token.wait()
            token.raise_if_cancelled(str(item))

        run = asyncio.create_task(executor.execute(items_of(1, 2, 3), launch, caller))
        await settle()
        caller.cancel("user abort")

        with pytest.raises(TransferCancelledError):
            await run

        await settle()
        assert executor.state == ExecutorState.CANCELLED
        assert executor.scheduled == 1
        assert executor.cancelled_items == 1
        assert executor.slots.in_use == 0

    @pytest.mark.asyncio
    async def test_units_outlive_a_cancelled_run_and_can_be_awaited(self):
        executor = ThrottledFailFastExecutor(max_concurrency=2)
        caller = CancellationToken()
        release = asyncio.Event()

        async def launch(item, token):
            await release.wait()
            return item

        run = asyncio.create_task(executor.execute(items_of(1, 2), launch, caller))
        await settle()
        caller.cancel("user abort")

        with pytest.raises(TransferCancelledError):
            await run
        assert executor.in_flight == 2

        release.set()
        await executor.wait_in_flight()

        assert executor.in_flight == 0
        assert sorted(executor.results) == [1, 2]
        assert executor.slots.in_use == 0

    @pytest.mark.asyncio
    async def test_cancel_before_start(self):
        executor = ThrottledFailFastExecutor(max_concurrency=2)
        caller = CancellationToken()
        caller.cancel()

        async def launch(item, token):
            raise AssertionError("must not run")

        with pytest.raises(TransferCancelledError):
            await executor.execute(items_of(1), launch, caller)
        assert executor.scheduled == 0
        assert executor.slots.in_use == 0

    @pytest.mark.asyncio
    async def test_settled_failure_wins_over_later_cancel(self):
        executor = ThrottledFailFastExecutor(max_concurrency=2)
        caller = CancellationToken()

        async def launch(item, token):
            if item == 0:
                raise ValueError("failed first")
            await caller.wait()
            return item

        run = asyncio.create_task(executor.execute(items_of(0, 1, 2), launch, caller))
        await settle()
        caller.cancel("too late")

        with pytest.raises(ValueError, match="failed first"):
            await run
        assert executor.state == ExecutorState.FAILED
        await settle()
        assert executor.slots.in_use == 0

    @pytest.mark.asyncio
    async def test_task_cancellation_cancels_units(self):
        executor = ThrottledFailFastExecutor(max_concurrency=2)
        never = asyncio.Event()

        async def launch(item, token):
            await never.wait()

        run = asyncio.create_task(executor.execute(items_of(1, 2), launch))
        await settle()
        run.cancel()

        with pytest.raises(asyncio.CancelledError):
            await run

        await settle()
        assert executor.state == ExecutorState.CANCELLED
        assert executor.run_token.is_cancelled
        assert executor.slots.in_use == 0
