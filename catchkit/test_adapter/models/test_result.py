"""Models for test execution results."""

from datetime import timedelta
from enum import Enum

from pydantic import BaseModel, Field

from catchkit.test_adapter.models.source_location import SourceLocation
from catchkit.test_adapter.models.test_identity import TestIdentity


class TestOutcome(str, Enum):
    """Outcome of a single test."""

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    NOT_FOUND = "not_found"


class TestResult(BaseModel):
    """Result of a single test execution."""

    __test__ = False

    identity: TestIdentity = Field(..., description="Test the result belongs to")
    outcome: TestOutcome = Field(..., description="Test execution outcome")
    message: str = Field(default="", description="Failure diagnostics")
    duration: timedelta | None = Field(
        default=None, description="Duration reported by the binary"
    )
    failure_location: SourceLocation | None = Field(
        default=None, description="Location of the first failure"
    )
