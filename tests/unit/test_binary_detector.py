"""Tests for test binary detection."""

from pathlib import Path

from catchkit.test_adapter.binary_detector import detect_test_binaries, is_test_binary

HELP_TEXT = b"\x7fELF\x00...  -l, --list-tests  list all tests\x00 -t, --list-tags\x00"


def test_is_test_binary_with_signature(tmp_path: Path) -> None:
    """is_test_binary accepts files embedding both flags."""
    binary = tmp_path / "tests"
    binary.write_bytes(HELP_TEXT)
    assert is_test_binary(binary) is True


def test_is_test_binary_missing_one_flag(tmp_path: Path) -> None:
    """is_test_binary requires every flag."""
    binary = tmp_path / "tool"
    binary.write_bytes(b"\x7fELF usage: --list-tests")
    assert is_test_binary(binary) is False


def test_is_test_binary_unreadable(tmp_path: Path) -> None:
    """is_test_binary excludes files it cannot read."""
    assert is_test_binary(tmp_path / "missing") is False


def test_is_test_binary_custom_signature(tmp_path: Path) -> None:
    """is_test_binary honours a custom signature."""
    binary = tmp_path / "tests"
    binary.write_bytes(b"--gtest_list_tests")
    assert is_test_binary(binary, ["--gtest_list_tests"]) is True


def test_detect_test_binaries_keeps_order(tmp_path: Path) -> None:
    """detect_test_binaries filters candidates and keeps their order."""
    second = tmp_path / "b_tests"
    second.write_bytes(HELP_TEXT)
    other = tmp_path / "readme.txt"
    other.write_text("nothing to see")
    first = tmp_path / "a_tests"
    first.write_bytes(HELP_TEXT)

    found = detect_test_binaries([second, other, first, tmp_path / "gone"])

    assert found == [second, first]
