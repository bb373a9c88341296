"""Run tests with the structured reporter and map the report to results."""

import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from xml.etree.ElementTree import Element

from catchkit.test_adapter.debuggers.base import DebugLauncher
from catchkit.test_adapter.debuggers.gdb import GdbLauncher
from catchkit.test_adapter.failure_formatter import (
    INDENT,
    failure_header,
    format_failure,
    location_of,
)
from catchkit.test_adapter.models.adapter_settings import AdapterSettings
from catchkit.test_adapter.models.source_location import SourceLocation
from catchkit.test_adapter.models.test_identity import RunRequest, TestIdentity
from catchkit.test_adapter.models.test_result import TestOutcome, TestResult
from catchkit.test_adapter.process_runner import run_executable, run_executable_debug
from catchkit.test_adapter.sink import LoggingSink, MessageLevel, ResultSink

logger = logging.getLogger(__name__)

_WRAP_HYPHEN = re.compile(r"(?<=\w)-\s+(?=\w)")


class ReportParseError(Exception):
    """The report of a test binary could not be obtained or parsed."""

    def __init__(self, binary: Path, detail: str) -> None:
        """Initialize error with the offending binary."""
        super().__init__(f"Could not read test report from {binary}: {detail}")
        self.binary = binary
        self.detail = detail


class ReportMappingError(Exception):
    """A report node is missing data needed to build a result."""


@dataclass(frozen=True)
class OverallResult:
    """Summary written by newer framework versions."""

    success: bool
    duration: timedelta | None = None

    @property
    def passed(self) -> bool:
        return self.success


@dataclass(frozen=True)
class OverallResults:
    """Summary written by older framework versions (no duration)."""

    failures: int
    expected_failures: int
    duration: None = None

    @property
    def passed(self) -> bool:
        # only expected failures occurred
        return self.failures == self.expected_failures


ReportSummary = OverallResult | OverallResults


def parse_report(text: str, binary: Path) -> Element:
    """Parse report text into its root element.

    Raises:
        ReportParseError: If the text is not well-formed XML

    """
    try:
        return ET.fromstring(text.strip())
    except ET.ParseError as e:
        raise ReportParseError(binary, str(e)) from e


def find_test_case(document: Element, identity: TestIdentity) -> Element | None:
    """Locate the ``TestCase`` node reporting on a test.

    Exact names are compared verbatim. Wildcard identities match any node
    whose name starts with the prefix, preferring the node whose full name
    equals the identity's display name once wrap points are ignored.
    Otherwise the n-th test sharing a filter takes the n-th prefix match.
    """
    test_cases = list(document.iter("TestCase"))

    if not identity.is_wildcard:
        for test_case in test_cases:
            if test_case.get("name") == identity.test_spec:
                return test_case
        return None

    prefix = identity.test_spec[:-1]
    candidates = [
        test_case
        for test_case in test_cases
        if test_case.get("name", "").startswith(prefix)
    ]
    for candidate in candidates:
        if _same_wrapped_name(candidate.get("name", ""), identity.display_name):
            return candidate
    if identity.spec_index < len(candidates):
        return candidates[identity.spec_index]
    return None


def read_summary(test_case: Element) -> ReportSummary | None:
    """Read the pass/fail summary of a test case in either schema.

    Raises:
        ReportMappingError: If the summary node lacks required attributes

    """
    overall = test_case.find("OverallResult")
    if overall is not None:
        success = overall.get("success")
        if success is None:
            raise ReportMappingError("OverallResult has no 'success' attribute")
        return OverallResult(
            success=success.strip().lower() == "true",
            duration=_parse_duration(overall.get("durationInSeconds")),
        )

    legacy = test_case.find("OverallResults")
    if legacy is not None:
        return OverallResults(
            failures=_int_attribute(legacy, "failures"),
            expected_failures=_int_attribute(legacy, "expectedFailures", default=0),
        )

    return None


def first_failure_location(test_case: Element) -> SourceLocation | None:
    """Location of the first failure anywhere below a test case."""
    for element in test_case.iter():
        failed = element.tag in ("Failure", "Exception") or (
            element.tag == "Expression" and element.get("success") == "false"
        )
        if not failed:
            continue
        location = location_of(element)
        if location is not None:
            return location
    return None


class MessageBuilder:
    """Build the diagnostic text of a failed test case.

    Sections are visited first, depth first; each section that did not
    pass contributes its own paragraphs under a header naming it. Then
    the node's own failed expressions, unexpected exceptions, info
    messages, warnings and explicit failures follow, in that order.
    """

    def __init__(self, max_depth: int = 64) -> None:
        """Initialize builder with the maximum section nesting."""
        self.max_depth = max_depth

    def build(self, test_case: Element) -> str:
        return "\n".join(self._paragraphs(test_case, depth=0))

    def _paragraphs(self, element: Element, depth: int) -> list[str]:
        if depth > self.max_depth:
            raise ReportMappingError(
                f"Sections nested deeper than {self.max_depth} levels"
            )

        paragraphs: list[str] = []
        for section in element.findall("Section"):
            if _section_passed(section):
                continue
            nested = self._paragraphs(section, depth + 1)
            if nested:
                header = f"In section \"{section.get('name', '')}\":\n"
                paragraphs.append(header + "\n".join(nested))

        for tag, rule in _NODE_RULES:
            for child in element.findall(tag):
                paragraph = rule(child)
                if paragraph:
                    paragraphs.append(paragraph)

        return paragraphs


def _expression(element: Element) -> str | None:
    if element.get("success", "true").strip().lower() != "false":
        return None
    return format_failure(element)


def _exception(element: Element) -> str:
    return (
        failure_header(location_of(element))
        + "due to unexpected exception with message:\n"
        + f"{INDENT}{_text(element)}\n"
    )


def _info(element: Element) -> str:
    return f"Info: {_text(element)}\n"


def _warning(element: Element) -> str:
    return f"Warning: {_text(element)}\n"


def _failure(element: Element) -> str:
    paragraph = failure_header(location_of(element))
    message = _text(element)
    if message:
        paragraph += f"explicitly with message:\n{INDENT}{message}\n"
    return paragraph


_NODE_RULES = (
    ("Expression", _expression),
    ("Exception", _exception),
    ("Info", _info),
    ("Warning", _warning),
    ("Failure", _failure),
)


class ReportMapper:
    """Runs one request against a binary and maps its report to results."""

    def __init__(
        self,
        sink: ResultSink | None = None,
        settings: AdapterSettings | None = None,
        launcher: DebugLauncher | None = None,
    ) -> None:
        """Initialize mapper with the host sink, settings and debugger."""
        self.sink = sink or LoggingSink()
        self.settings = settings or AdapterSettings()
        self.launcher = launcher or GdbLauncher()

    async def run(
        self, request: RunRequest, identities: Sequence[TestIdentity]
    ) -> dict[TestIdentity, TestResult]:
        """Execute the request and map a result for each identity.

        Args:
            request: Binary, test filter and debug switch
            identities: Tests whose results should be read from the report

        Returns:
            One result per identity, in the order given

        Raises:
            ReportParseError: If the binary could not be run or its report
                is not well formed

        """
        output = await self._execute(request)
        document = parse_report(output, request.binary)
        return self.map_results(document, identities)

    def map_results(
        self, document: Element, identities: Sequence[TestIdentity]
    ) -> dict[TestIdentity, TestResult]:
        """Map a parsed report, isolating failures to the affected test."""
        builder = MessageBuilder(self.settings.max_section_depth)
        results: dict[TestIdentity, TestResult] = {}

        for identity in identities:
            try:
                results[identity] = map_result(document, identity, builder)
            except Exception as e:
                logger.exception(f"Failed to map result of {identity.qualified_name}")
                message = f"Error reading result of '{identity.qualified_name}': {e}"
                self.sink.send_message(MessageLevel.ERROR, message)
                results[identity] = TestResult(
                    identity=identity, outcome=TestOutcome.NOT_FOUND, message=message
                )

        return results

    async def _execute(self, request: RunRequest) -> str:
        settings = self.settings
        args = [request.test_spec, settings.reporter_flag, settings.reporter]

        try:
            if request.debug:
                return await run_executable_debug(
                    self.launcher,
                    request.binary,
                    [*args, settings.break_flag],
                    settings.output_flag,
                )
            return await run_executable(request.binary, args)
        except OSError as e:
            raise ReportParseError(request.binary, str(e)) from e


def map_result(
    document: Element, identity: TestIdentity, builder: MessageBuilder
) -> TestResult:
    """Derive the result of one test from a parsed report."""
    test_case = find_test_case(document, identity)
    if test_case is None:
        return TestResult(
            identity=identity,
            outcome=TestOutcome.NOT_FOUND,
            message=f"No result for '{identity.test_spec}' in the test report",
        )

    summary = read_summary(test_case)
    if summary is None:
        return TestResult(
            identity=identity,
            outcome=TestOutcome.NOT_FOUND,
            message=f"Test report has no overall result for '{identity.test_spec}'",
        )

    if summary.passed:
        return TestResult(
            identity=identity, outcome=TestOutcome.PASSED, duration=summary.duration
        )

    return TestResult(
        identity=identity,
        outcome=TestOutcome.FAILED,
        message=builder.build(test_case),
        duration=summary.duration,
        failure_location=first_failure_location(test_case),
    )


def _section_passed(section: Element) -> bool:
    totals = section.find("OverallResults")
    if totals is None:
        return False
    try:
        return int(totals.get("failures", "")) == 0
    except ValueError:
        return False


def _parse_duration(value: str | None) -> timedelta | None:
    if value is None:
        return None
    try:
        return timedelta(seconds=float(value))
    except (ValueError, OverflowError):
        logger.warning(f"Ignoring unparsable duration {value!r}")
        return None


def _int_attribute(element: Element, name: str, default: int | None = None) -> int:
    value = element.get(name)
    if value is None:
        if default is None:
            raise ReportMappingError(f"{element.tag} has no '{name}' attribute")
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ReportMappingError(
            f"{element.tag} attribute '{name}' is not a number: {value!r}"
        ) from e


def _text(element: Element) -> str:
    return "".join(element.itertext()).strip()


def _same_wrapped_name(name: str, display_name: str) -> bool:
    # wrapping may break after punctuation without a space, or hyphenate a word
    squashed = _squash(name)
    return squashed in (
        _squash(display_name),
        _squash(_WRAP_HYPHEN.sub("", display_name)),
    )


def _squash(name: str) -> str:
    return "".join(name.split())
