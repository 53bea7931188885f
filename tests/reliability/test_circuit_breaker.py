import asyncio
import unittest

from agentic_chat.errors import CircuitOpenError
from agentic_chat.reliability import CircuitBreaker, CircuitState


class _Clock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


async def _fail() -> None:
    raise ConnectionError("down")


async def _succeed() -> str:
    return "ok"


class CircuitBreakerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _Clock()
        self.breaker = CircuitBreaker(threshold=3, timeout=60.0, name="test", clock=self.clock)

    def _fail_times(self, count: int) -> None:
        for _ in range(count):
            with self.assertRaises(ConnectionError):
                asyncio.run(self.breaker.execute(_fail))

    def test_starts_closed(self) -> None:
        snapshot = self.breaker.snapshot()
        self.assertEqual(CircuitState.CLOSED, snapshot.state)
        self.assertEqual(0, snapshot.failures)

    def test_opens_at_threshold(self) -> None:
        self._fail_times(2)
        self.assertEqual(CircuitState.CLOSED, self.breaker.state)
        self._fail_times(1)
        snapshot = self.breaker.snapshot()
        self.assertEqual(CircuitState.OPEN, snapshot.state)
        self.assertEqual(3, snapshot.failures)
        self.assertEqual(1000.0, snapshot.last_failure_time)

    def test_open_circuit_rejects_without_calling(self) -> None:
        self._fail_times(3)
        calls: list[int] = []

        async def operation() -> None:
            calls.append(1)

        self.clock.now += 30
        with self.assertRaises(CircuitOpenError):
            asyncio.run(self.breaker.execute(operation))
        self.assertEqual([], calls)

    def test_success_resets_failures(self) -> None:
        self._fail_times(2)
        self.assertEqual("ok", asyncio.run(self.breaker.execute(_succeed)))
        self.assertEqual(0, self.breaker.snapshot().failures)
        self._fail_times(2)
        self.assertEqual(CircuitState.CLOSED, self.breaker.state)

    def test_half_open_trial_success_closes(self) -> None:
        self._fail_times(3)
        self.clock.now += 61
        self.assertEqual("ok", asyncio.run(self.breaker.execute(_succeed)))
        snapshot = self.breaker.snapshot()
        self.assertEqual(CircuitState.CLOSED, snapshot.state)
        self.assertEqual(0, snapshot.failures)

    def test_half_open_trial_failure_reopens(self) -> None:
        self._fail_times(3)
        self.clock.now += 61
        self._fail_times(1)
        snapshot = self.breaker.snapshot()
        self.assertEqual(CircuitState.OPEN, snapshot.state)
        self.assertEqual(1061.0, snapshot.last_failure_time)
        with self.assertRaises(CircuitOpenError):
            asyncio.run(self.breaker.execute(_succeed))

    def test_cooldown_must_strictly_elapse(self) -> None:
        self._fail_times(3)
        self.clock.now += 60
        with self.assertRaises(CircuitOpenError):
            asyncio.run(self.breaker.execute(_succeed))

    def test_reset(self) -> None:
        self._fail_times(3)
        self.breaker.reset()
        snapshot = self.breaker.snapshot()
        self.assertEqual(CircuitState.CLOSED, snapshot.state)
        self.assertEqual(0, snapshot.failures)
        self.assertEqual(0.0, snapshot.last_failure_time)


if __name__ == "__main__":
    unittest.main()
