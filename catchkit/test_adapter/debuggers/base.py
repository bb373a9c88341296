"""Abstract base class for debugger-attached process launchers."""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path

import psutil


class DebugLauncher(ABC):
    """Host capability that starts a process with a debugger attached."""

    @abstractmethod
    def launch(self, executable: Path, cwd: Path, arguments: str) -> int:
        """Start the executable under a debugger.

        Args:
            executable: Test binary to launch
            cwd: Working directory of the debuggee
            arguments: Quoted command line produced by ``escape_arguments``

        Returns:
            Process id to wait on

        """

    async def wait_for_exit(self, pid: int, poll_interval: float = 0.1) -> None:
        """Wait until the launched process has exited.

        There is no timeout: a debugging session lasts as long as the user
        keeps it open.

        Args:
            pid: Process id returned by ``launch``
            poll_interval: Seconds between polls (default: 0.1)

        """
        while _is_running(pid):
            await asyncio.sleep(poll_interval)


def _is_running(pid: int) -> bool:
    """Check whether a process is still alive (zombies count as exited)."""
    try:
        return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False
