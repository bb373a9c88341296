"""Host-side receivers for messages and results."""

import logging
from abc import ABC, abstractmethod
from enum import Enum

from catchkit.test_adapter.models.test_identity import TestIdentity
from catchkit.test_adapter.models.test_result import TestOutcome, TestResult

logger = logging.getLogger(__name__)


class MessageLevel(str, Enum):
    """Severity of a message sent to the host."""

    INFORMATIONAL = "informational"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    MessageLevel.INFORMATIONAL: logging.INFO,
    MessageLevel.WARNING: logging.WARNING,
    MessageLevel.ERROR: logging.ERROR,
}


class ResultSink(ABC):
    """Abstract receiver of test progress supplied by the host."""

    @abstractmethod
    def send_message(self, level: MessageLevel, message: str) -> None:
        """Report a message that is not tied to a result."""

    def record_start(self, identity: TestIdentity) -> None:  # noqa: B027
        """Called before a test is launched."""

    def record_result(self, result: TestResult) -> None:  # noqa: B027
        """Called once per requested test, in request order."""


class LoggingSink(ResultSink):
    """Sink writing everything to the standard logging tree."""

    def send_message(self, level: MessageLevel, message: str) -> None:
        """Log the message at the matching level."""
        logger.log(_LOG_LEVELS[level], message)

    def record_start(self, identity: TestIdentity) -> None:
        """Log the test about to run."""
        logger.info(f"Running: {identity.source.name}/{identity.qualified_name}")

    def record_result(self, result: TestResult) -> None:
        """Log the outcome, with diagnostics for unsuccessful tests."""
        name = f"{result.identity.source.name}/{result.identity.qualified_name}"
        if result.outcome == TestOutcome.PASSED:
            logger.info(f"✓ {name}: {result.outcome.value}")
            return

        logger.error(f"✗ {name}: {result.outcome.value}")
        if result.message:
            logger.error(f"  Message: {result.message}")
