import asyncio

import pytest

from cinevibe.services.limiter import ConcurrencyLimiter


async def settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


def test_ceiling_is_respected_and_failures_free_their_slot():
    async def scenario():
        limiter = ConcurrencyLimiter(2)
        gates = [asyncio.Event() for _ in range(5)]
        started: list[int] = []
        running = 0
        peak = 0

        async def task(i: int) -> int:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            started.append(i)
            try:
                await gates[i].wait()
                if i == 1:
                    raise RuntimeError("boom")
                return i * 10
            finally:
                running -= 1

        gathered = asyncio.gather(
            *(limiter.schedule(lambda i=i: task(i)) for i in range(5)),
            return_exceptions=True,
        )
        await settle()
        assert limiter.active == 2
        assert limiter.pending == 3

        for gate in gates:
            gate.set()
            await settle()

        results = await gathered
        return results, started, peak, limiter

    results, started, peak, limiter = asyncio.run(scenario())

    assert peak == 2
    assert started == [0, 1, 2, 3, 4]
    assert results[0] == 0
    assert isinstance(results[1], RuntimeError)
    assert results[2:] == [20, 30, 40]
    assert limiter.active == 0
    assert limiter.pending == 0


def test_map_keeps_submission_order():
    async def scenario():
        limiter = ConcurrencyLimiter(2)

        async def delayed(value: int, delay: float) -> int:
            await asyncio.sleep(delay)
            return value

        return await limiter.map(
            [lambda: delayed(1, 0.03), lambda: delayed(2, 0.0), lambda: delayed(3, 0.01)]
        )

    assert asyncio.run(scenario()) == [1, 2, 3]


def test_unbounded_limiter_runs_everything_at_once():
    async def scenario():
        limiter = ConcurrencyLimiter(None)
        release = asyncio.Event()

        async def task() -> None:
            await release.wait()

        gathered = asyncio.gather(*(limiter.schedule(task) for _ in range(6)))
        await settle()
        active = limiter.active
        release.set()
        await gathered
        return active

    assert asyncio.run(scenario()) == 6


def test_invalid_ceiling():
    with pytest.raises(ValueError):
        ConcurrencyLimiter(0)


def test_limiter_can_be_reused_across_event_loops():
    limiter = ConcurrencyLimiter(1)

    async def scenario():
        async def task(value: int) -> int:
            await asyncio.sleep(0)
            return value

        return await limiter.map([lambda: task(1), lambda: task(2), lambda: task(3)])

    assert asyncio.run(scenario()) == [1, 2, 3]
    assert asyncio.run(scenario()) == [1, 2, 3]
    assert limiter.active == 0
    assert limiter.pending == 0
