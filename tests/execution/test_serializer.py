"""
Tests for the RequestSerializer.

Covers:
- Minimum spacing between dispatch starts
- Strict mutual exclusion (no two calls overlap)
- FIFO ordering and per-caller error isolation
- status() reporting
"""

import asyncio

import pytest

from tilehub.execution.serializer import RequestSerializer

from tests._support.fakes import FakeMonotonic


class TestSpacing:
    @pytest.mark.asyncio
    async def test_spacing_between_dispatches(self):
        clock = FakeMonotonic()
        serializer = RequestSerializer(1.0, clock=clock, sleep=clock.sleep)
        starts = []

        def call(n):
            starts.append(clock())
            return n

        results = await asyncio.gather(*(serializer.submit(call, i) for i in range(3)))
        assert results == [0, 1, 2]
        assert starts == [0.0, 1.0, 2.0]
        assert clock.sleeps == [1.0, 1.0]

    @pytest.mark.asyncio
    async def test_no_wait_when_gap_already_elapsed(self):
        clock = FakeMonotonic()
        serializer = RequestSerializer(1.0, clock=clock, sleep=clock.sleep)
        await serializer.submit(lambda: None)
        clock.value += 5
        await serializer.submit(lambda: None)
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_set_min_delay(self):
        clock = FakeMonotonic()
        serializer = RequestSerializer(1.0, clock=clock, sleep=clock.sleep)
        serializer.set_min_delay(0.25)
        await asyncio.gather(serializer.submit(lambda: 1), serializer.submit(lambda: 2))
        assert clock.sleeps == [0.25]

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            RequestSerializer(-1)
        with pytest.raises(ValueError):
            RequestSerializer(1).set_min_delay(-0.5)


class TestExclusion:
    @pytest.mark.asyncio
    async def test_calls_never_overlap(self):
        serializer = RequestSerializer(0)
        active = 0
        peak = 0
        order = []

        async def call(n):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            order.append(n)
            active -= 1
            return n

        await asyncio.gather(*(serializer.submit(call, i) for i in range(5)))
        assert peak == 1
        assert order == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_error_only_reaches_its_caller(self):
        serializer = RequestSerializer(0)

        def boom():
            raise RuntimeError("provider exploded")

        results = await asyncio.gather(
            serializer.submit(lambda: "before"),
            serializer.submit(boom),
            serializer.submit(lambda: "after"),
            return_exceptions=True,
        )
        assert results[0] == "before"
        assert isinstance(results[1], RuntimeError)
        assert results[2] == "after"

    @pytest.mark.asyncio
    async def test_kwargs_forwarded(self):
        serializer = RequestSerializer(0)

        async def call(a, *, b):
            return a + b

        assert await serializer.submit(call, 1, b=2) == 3


class TestStatus:
    @pytest.mark.asyncio
    async def test_idle_status(self):
        serializer = RequestSerializer(0.5)
        await serializer.submit(lambda: None)
        await asyncio.sleep(0)
        status = serializer.status()
        assert status["queue_length"] == 0
        assert status["is_processing"] is False
        assert status["min_delay"] == 0.5
        assert status["dispatched"] == 1

    @pytest.mark.asyncio
    async def test_busy_status(self):
        serializer = RequestSerializer(0)
        gate = asyncio.Event()

        async def slow():
            await gate.wait()

        tasks = [asyncio.create_task(serializer.submit(slow)) for _ in range(3)]
        await asyncio.sleep(0.01)
        status = serializer.status()
        assert status["is_processing"] is True
        assert status["in_flight"] is True
        assert status["queue_length"] == 2
        gate.set()
        await asyncio.gather(*tasks)
