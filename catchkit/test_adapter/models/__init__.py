"""Data models for discovered tests, results, and settings."""

from catchkit.test_adapter.models.adapter_settings import AdapterSettings
from catchkit.test_adapter.models.source_location import SourceLocation
from catchkit.test_adapter.models.test_identity import RunRequest, TestIdentity
from catchkit.test_adapter.models.test_result import TestOutcome, TestResult

__all__ = [
    "AdapterSettings",
    "RunRequest",
    "SourceLocation",
    "TestIdentity",
    "TestOutcome",
    "TestResult",
]
