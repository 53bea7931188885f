import asyncio
import unittest

from agentic_chat.errors import OperationTimedOutError
from agentic_chat.reliability import with_timeout


class WithTimeoutTests(unittest.TestCase):
    def test_returns_result_when_operation_wins(self) -> None:
        async def quick() -> str:
            return "done"

        self.assertEqual("done", asyncio.run(with_timeout(quick(), 1.0)))

    def test_raises_timed_out_with_message(self) -> None:
        async def scenario() -> None:
            await with_timeout(asyncio.sleep(10), 0.01, "slow store")

        with self.assertRaises(OperationTimedOutError) as ctx:
            asyncio.run(scenario())
        self.assertEqual("slow store", ctx.exception.message)
        self.assertEqual(0.01, ctx.exception.timeout)

    def test_operation_errors_propagate_unchanged(self) -> None:
        error = RuntimeError("boom")

        async def failing() -> None:
            raise error

        with self.assertRaises(RuntimeError) as ctx:
            asyncio.run(with_timeout(failing(), 1.0))
        self.assertIs(error, ctx.exception)

    def test_operations_own_timeout_error_is_not_translated(self) -> None:
        async def failing() -> None:
            raise TimeoutError("inner")

        with self.assertRaises(TimeoutError) as ctx:
            asyncio.run(with_timeout(failing(), 1.0))
        self.assertNotIsInstance(ctx.exception, OperationTimedOutError)

    def test_timed_out_operation_keeps_running(self) -> None:
        async def scenario() -> list[str]:
            finished: list[str] = []

            async def slow() -> None:
                await asyncio.sleep(0.05)
                finished.append("slow")

            with self.assertRaises(OperationTimedOutError):
                await with_timeout(slow(), 0.01)
            await asyncio.sleep(0.1)
            return finished

        self.assertEqual(["slow"], asyncio.run(scenario()))

    def test_late_failure_is_consumed(self) -> None:
        async def scenario() -> None:
            async def slow_failure() -> None:
                await asyncio.sleep(0.02)
                raise RuntimeError("late")

            with self.assertRaises(OperationTimedOutError):
                await with_timeout(slow_failure(), 0.005)
            await asyncio.sleep(0.05)

        asyncio.run(scenario())


if __name__ == "__main__":
    unittest.main()
