"""Launcher running test binaries under gdb in batch mode."""

import logging
import subprocess
from pathlib import Path

from catchkit.test_adapter.debuggers.base import DebugLauncher

logger = logging.getLogger(__name__)


class GdbLauncher(DebugLauncher):
    """Run the debuggee with gdb, printing a backtrace if it crashes.

    Breaks raised by failing assertions are reported but do not stop the
    debuggee, so the report file is always written to the end.
    """

    def __init__(self, gdb_path: str = "gdb") -> None:
        """Initialize launcher with the gdb executable to use."""
        self.gdb_path = gdb_path

    def launch(self, executable: Path, cwd: Path, arguments: str) -> int:
        """Start gdb and return its process id."""
        # without a shell gdb splits the "run" arguments itself
        command = [
            self.gdb_path,
            "--batch",
            "--nx",
            "-ex",
            "set confirm off",
            "-ex",
            "set pagination off",
            "-ex",
            "set startup-with-shell off",
            "-ex",
            "handle SIGTRAP nostop print nopass",
            "-ex",
            f"run {arguments}",
            "-ex",
            "bt",
            str(executable),
        ]
        logger.info(f"Launching under debugger: {command}")
        process = subprocess.Popen(command, cwd=cwd)  # noqa: S603
        return process.pid
