"""Quote argument lists into a single native command line."""

import re
from collections.abc import Sequence

_BACKSLASHES_BEFORE_QUOTE = re.compile(r'(\\*)"')
_TRAILING_BACKSLASHES = re.compile(r"(\\+)$")


def escape_argument(arg: str) -> str:
    """Quote one argument so native argv splitting returns it unchanged.

    Embedded quotes are backslash-escaped, together with any backslashes
    immediately preceding them. A trailing run of backslashes is doubled
    so the closing quote is not consumed.
    """
    escaped = _BACKSLASHES_BEFORE_QUOTE.sub(
        lambda m: m.group(1) * 2 + '\\"', arg
    )
    escaped = _TRAILING_BACKSLASHES.sub(lambda m: m.group(1) * 2, escaped)
    return f'"{escaped}"'


def escape_arguments(args: Sequence[str]) -> str:
    """Join quoted arguments with single spaces."""
    return " ".join(escape_argument(arg) for arg in args)
