"""Test helper utilities for the proxyctl test suite."""

from tests.helpers.cli_assertions import (
    assert_exit_code,
    assert_silent,
    assert_stderr_contains,
    assert_stdout_contains,
    assert_usage_on_stderr,
)
from tests.helpers.filesystem import make_executable

__all__ = [
    "assert_exit_code",
    "assert_stdout_contains",
    "assert_stderr_contains",
    "assert_usage_on_stderr",
    "assert_silent",
    "make_executable",
]
