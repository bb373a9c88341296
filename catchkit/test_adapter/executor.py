"""Test executor coordinating discovery and runs for the host."""

import asyncio
import logging
import threading
from collections.abc import AsyncIterator, Sequence
from enum import Enum
from pathlib import Path

from catchkit.test_adapter.binary_detector import detect_test_binaries
from catchkit.test_adapter.debuggers.base import DebugLauncher
from catchkit.test_adapter.models.adapter_settings import AdapterSettings
from catchkit.test_adapter.models.test_identity import RunRequest, TestIdentity
from catchkit.test_adapter.models.test_result import TestOutcome, TestResult
from catchkit.test_adapter.report_mapper import ReportMapper, ReportParseError
from catchkit.test_adapter.sink import LoggingSink, MessageLevel, ResultSink
from catchkit.test_adapter.test_discoverer import discover_all_tests

logger = logging.getLogger(__name__)


class ExecutorState(str, Enum):
    """Lifecycle of one batch run."""

    STOPPED = "stopped"
    RUNNING = "running"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"


class RunState:
    """Thread-safe run state that only ever moves forward."""

    def __init__(self) -> None:
        """Initialize state as stopped."""
        self._lock = threading.Lock()
        self._state = ExecutorState.STOPPED

    @property
    def value(self) -> ExecutorState:
        with self._lock:
            return self._state

    def start(self) -> None:
        self._advance(ExecutorState.STOPPED, ExecutorState.RUNNING)

    def request_cancel(self) -> bool:
        """Ask a running batch to stop; returns whether the request applied."""
        return self._advance(ExecutorState.RUNNING, ExecutorState.CANCELLING)

    def should_continue(self) -> bool:
        """Check before each launch, acknowledging a pending cancellation."""
        with self._lock:
            if self._state == ExecutorState.CANCELLING:
                self._state = ExecutorState.CANCELLED
            return self._state == ExecutorState.RUNNING

    def _advance(self, expected: ExecutorState, new: ExecutorState) -> bool:
        with self._lock:
            if self._state != expected:
                return False
            self._state = new
            return True


class TestExecutor:
    """Discovers and runs tests on behalf of a host."""

    __test__ = False

    def __init__(
        self,
        sink: ResultSink | None = None,
        settings: AdapterSettings | None = None,
        launcher: DebugLauncher | None = None,
    ) -> None:
        """Initialize executor with the host sink, settings and debugger."""
        self.sink = sink or LoggingSink()
        self.settings = settings or AdapterSettings()
        self.mapper = ReportMapper(self.sink, self.settings, launcher)
        self._state = RunState()

    @property
    def state(self) -> ExecutorState:
        return self._state.value

    def cancel(self) -> None:
        """Stop scheduling further tests; the running one completes."""
        if self._state.request_cancel():
            logger.info("Cancellation requested")

    async def discover(self, sources: Sequence[Path]) -> list[TestIdentity]:
        """Find the tests in every source that looks like a test binary."""
        # reading whole binaries must not block the event loop
        binaries = await asyncio.to_thread(
            detect_test_binaries, sources, self.settings.signature_flags
        )
        return await discover_all_tests(binaries, self.settings)

    async def run_sources(
        self, sources: Sequence[Path], debug: bool = False
    ) -> AsyncIterator[TestResult]:
        """Discover the tests in the sources and run all of them."""
        tests = await self.discover(sources)
        async for result in self.run_tests(tests, debug=debug):
            yield result

    def run_tests(
        self, tests: Sequence[TestIdentity], debug: bool = False
    ) -> AsyncIterator[TestResult]:
        """Run tests one at a time, yielding each result as it completes.

        The run starts when this is called, so a cancel issued before the
        first result is awaited already applies. Results come back in
        request order, one per test, until the batch is cancelled.
        """
        state = RunState()
        state.start()
        self._state = state
        return self._run(tests, debug, state)

    async def _run(
        self, tests: Sequence[TestIdentity], debug: bool, state: RunState
    ) -> AsyncIterator[TestResult]:
        logger.info(f"Running {len(tests)} tests (debug={debug})")

        for test in tests:
            if not state.should_continue():
                logger.info("Test run cancelled")
                break

            self.sink.record_start(test)
            result = await self._run_single_test(test, debug)
            self.sink.record_result(result)
            yield result

    async def _run_single_test(self, test: TestIdentity, debug: bool) -> TestResult:
        request = RunRequest(binary=test.source, test_spec=test.test_spec, debug=debug)

        try:
            results = await self.mapper.run(request, [test])
        except ReportParseError as e:
            logger.error(str(e))
            self.sink.send_message(MessageLevel.ERROR, str(e))
            return TestResult(identity=test, outcome=TestOutcome.NOT_FOUND, message=str(e))

        return results[test]
