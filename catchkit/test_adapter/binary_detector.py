"""Detect which candidate files are test binaries of the supported framework."""

import logging
from collections.abc import Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SIGNATURE = ("--list-tests", "--list-tags")


def is_test_binary(path: Path, signature: Sequence[str] = DEFAULT_SIGNATURE) -> bool:
    """Check whether a file embeds every signature string.

    Test binaries carry the framework's command-line help text, so the
    flags it documents show up in the raw bytes. This is a heuristic:
    stripped binaries are missed and unrelated files may match.

    Args:
        path: Candidate file
        signature: Strings that must all be present

    Returns:
        True if every signature string was found, False otherwise
        (including when the file cannot be read)

    """
    try:
        contents = path.read_bytes()
    except OSError as e:
        logger.info(f"Skipping unreadable candidate {path}: {e}")
        return False

    return all(flag.encode() in contents for flag in signature)


def detect_test_binaries(
    candidates: Sequence[Path], signature: Sequence[str] = DEFAULT_SIGNATURE
) -> list[Path]:
    """Filter candidate files down to test binaries, keeping their order."""
    binaries = [path for path in candidates if is_test_binary(path, signature)]
    logger.info(f"Found {len(binaries)} test binaries in {len(candidates)} candidates")
    return binaries
