"""CLI entry point for the test adapter."""

import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import typer
from pydantic import ValidationError

from catchkit.test_adapter.executor import TestExecutor
from catchkit.test_adapter.models.adapter_settings import AdapterSettings
from catchkit.test_adapter.models.test_identity import TestIdentity
from catchkit.test_adapter.models.test_result import TestOutcome, TestResult

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
    force=True,
)
logger = logging.getLogger(__name__)

app = typer.Typer()


def load_settings(settings_json: str | None) -> AdapterSettings:
    """Validate the --settings JSON document.

    Raises:
        ValueError: If the JSON is invalid or doesn't match the schema

    """
    if not settings_json:
        return AdapterSettings()

    try:
        data = json.loads(settings_json)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in settings: {e}")

    try:
        return AdapterSettings.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid settings: {e}") from e


@app.command()
def discover(
    sources: list[Path] = typer.Argument(..., help="Candidate test binaries"),  # noqa: B008
    settings: str | None = typer.Option(None, help="JSON adapter settings"),
    verbose: bool = typer.Option(False, help="Enable debug logging"),
) -> None:
    """List the tests contained in the given binaries."""
    executor = _create_executor(settings, verbose)

    tests = asyncio.run(executor.discover(sources))
    logger.info(f"Discovered {len(tests)} tests")

    typer.echo(json.dumps([_identity_to_json(test) for test in tests], indent=2))


@app.command()
def run(
    sources: list[Path] = typer.Argument(..., help="Candidate test binaries"),  # noqa: B008
    test_filter: list[str] = typer.Option(  # noqa: B008
        [], "--filter", help="Only run tests with this qualified or display name"
    ),
    debug: bool = typer.Option(False, help="Run each test under gdb"),
    settings: str | None = typer.Option(None, help="JSON adapter settings"),
    verbose: bool = typer.Option(False, help="Enable debug logging"),
) -> None:
    """Run the tests contained in the given binaries."""
    executor = _create_executor(settings, verbose)

    try:
        results = asyncio.run(_run(executor, sources, test_filter, debug))
    except Exception as e:
        logger.exception("Test execution failed")
        typer.echo(f"Error running tests: {e}", err=True)
        raise typer.Exit(code=1)

    if not results:
        typer.echo("No tests to run")
        return

    output = {
        "total": len(results),
        "passed": _count(results, TestOutcome.PASSED),
        "failed": _count(results, TestOutcome.FAILED),
        "not_found": _count(results, TestOutcome.NOT_FOUND),
        "results": [_result_to_json(result) for result in results],
    }
    typer.echo(json.dumps(output, indent=2))

    unsuccessful = len(results) - output["passed"]
    if unsuccessful:
        logger.error(f"Tests failed: {unsuccessful}/{len(results)}")
        raise typer.Exit(code=1)


async def _run(
    executor: TestExecutor,
    sources: Sequence[Path],
    test_filter: Sequence[str],
    debug: bool,
) -> list[TestResult]:
    tests = await executor.discover(sources)
    if test_filter:
        wanted = set(test_filter)
        tests = [
            test
            for test in tests
            if test.qualified_name in wanted or test.display_name in wanted
        ]
    return [result async for result in executor.run_tests(tests, debug=debug)]


def _create_executor(settings_json: str | None, verbose: bool) -> TestExecutor:
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        settings = load_settings(settings_json)
    except ValueError as e:
        logger.error(f"Failed to load settings: {e}")
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    return TestExecutor(settings=settings)


def _count(results: Sequence[TestResult], outcome: TestOutcome) -> int:
    return sum(1 for r in results if r.outcome == outcome)


def _identity_to_json(test: TestIdentity) -> dict[str, object]:
    return {
        "qualified_name": test.qualified_name,
        "display_name": test.display_name,
        "tags": sorted(test.tags),
        "source": str(test.source),
    }


def _result_to_json(result: TestResult) -> dict[str, object]:
    return {
        "source": str(result.identity.source),
        "test_name": result.identity.qualified_name,
        "outcome": result.outcome.value,
        "duration": (
            result.duration.total_seconds() if result.duration is not None else None
        ),
        "message": result.message or None,
        "failure_location": (
            str(result.failure_location) if result.failure_location else None
        ),
    }


if __name__ == "__main__":  # pragma: no cover
    app()
