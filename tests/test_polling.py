import asyncio
import itertools

import pytest

from barbershop.polling import Poller


def test_poller_refetches_until_stopped():
    calls = []

    async def fetch():
        calls.append(len(calls))
        return len(calls)

    async def scenario():
        poller = Poller(fetch, interval=0.01)
        poller.start()
        await asyncio.sleep(0.06)
        await poller.stop()
        seen = len(calls)
        await asyncio.sleep(0.03)
        return poller, seen

    poller, seen = asyncio.run(scenario())

    assert seen >= 2
    assert len(calls) == seen
    assert poller.last_result == seen
    assert not poller.running


def test_poller_keeps_going_after_a_failure():
    outcomes = itertools.chain([RuntimeError("backend down")], itertools.repeat("ok"))

    async def fetch():
        outcome = next(outcomes)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def scenario():
        async with Poller(fetch, interval=0.01) as poller:
            await asyncio.sleep(0.05)
        return poller

    poller = asyncio.run(scenario())

    assert poller.ticks >= 2
    assert poller.last_result == "ok"
    assert poller.last_error is None


def test_interval_must_be_positive():
    async def fetch():
        return None

    with pytest.raises(ValueError):
        Poller(fetch, interval=0)


def test_stop_lets_the_callers_own_cancellation_through():
    async def fetch():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            # slow teardown keeps stop() waiting
            await asyncio.sleep(0.05)
            raise

    async def scenario():
        poller = Poller(fetch, interval=1)
        poller.start()
        await asyncio.sleep(0.01)

        stopper = asyncio.get_running_loop().create_task(poller.stop())
        await asyncio.sleep(0.01)
        stopper.cancel()
        with pytest.raises(asyncio.CancelledError):
            await stopper

        await asyncio.sleep(0.1)
        return poller

    poller = asyncio.run(scenario())
    assert not poller.running
