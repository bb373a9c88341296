"""Run test binaries and capture what they report."""

import asyncio
import logging
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

from catchkit.test_adapter.arguments import escape_arguments
from catchkit.test_adapter.debuggers.base import DebugLauncher

logger = logging.getLogger(__name__)


async def run_executable(executable: Path, args: Sequence[str]) -> str:
    """Run a binary to completion and return its standard output.

    The exit code is not checked: test binaries exit non-zero whenever a
    test fails, and failures are read from the output instead. Standard
    error is discarded.

    Args:
        executable: Binary to run
        args: Arguments passed to the binary

    Returns:
        Decoded standard output

    Raises:
        OSError: If the binary cannot be started

    """
    logger.debug(f"Running: {executable} {escape_arguments(args)}")

    process = await asyncio.create_subprocess_exec(
        str(executable),
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
    )
    stdout, _ = await process.communicate()

    logger.debug(f"{executable.name} exited with code {process.returncode}")
    return stdout.decode(errors="replace")


async def run_executable_debug(
    launcher: DebugLauncher,
    executable: Path,
    args: Sequence[str],
    output_flag: str,
) -> str:
    """Run a binary under a debugger and return the report it wrote.

    The report is redirected to a temporary file, which is removed before
    returning whether or not the session succeeded.

    Args:
        launcher: Host capability that attaches the debugger
        executable: Binary to run
        args: Arguments passed to the binary
        output_flag: Flag telling the binary where to write its report

    Returns:
        Contents of the report file

    Raises:
        OSError: If the report file cannot be read

    """
    fd, name = tempfile.mkstemp(prefix="catchkit-", suffix=".xml")
    os.close(fd)
    output_path = Path(name)

    try:
        cwd = Path.cwd()
        arguments = escape_arguments([*args, output_flag, str(output_path)])
        pid = launcher.launch(cwd / executable, cwd, arguments)
        logger.info(f"Debug session started with pid {pid}")

        await launcher.wait_for_exit(pid)
        logger.info(f"Debug session {pid} finished")

        return output_path.read_text(errors="replace")
    finally:
        output_path.unlink(missing_ok=True)
