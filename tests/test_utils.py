"""Tests for logging setup and disk space helpers."""

import logging
import sys

import pytest

from radiorec.utils import (
    check_disk_space_warning,
    format_bytes,
    get_disk_usage,
    has_enough_space,
    setup_logging,
)


@pytest.mark.parametrize("num_bytes,expected", [
    (500, "500.0 B"),
    (1536, "1.5 KB"),
    (864 * 1024 * 1024, "864.0 MB"),
    (3 * 1024 ** 3, "3.0 GB"),
])
def test_format_bytes(num_bytes, expected):
    assert format_bytes(num_bytes) == expected


def test_disk_usage_of_missing_directory(tmp_path):
    usage = get_disk_usage(tmp_path / "not" / "yet" / "created")
    assert usage["total_bytes"] > 0
    assert usage["free_bytes"] <= usage["total_bytes"]


def test_has_enough_space(tmp_path):
    assert has_enough_space(tmp_path, 0)
    assert not has_enough_space(tmp_path, 2 ** 62)


def test_low_space_warning(tmp_path):
    assert check_disk_space_warning(threshold_gb=0, path=tmp_path) is None
    warning = check_disk_space_warning(threshold_gb=10 ** 9, path=tmp_path)
    assert warning.startswith("⚠️ Low disk space warning!")


def test_setup_logging_installs_single_stdout_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging(logging.DEBUG)
        setup_logging(logging.DEBUG)
        assert len(root.handlers) == 1
        assert root.handlers[0].stream is sys.stdout
        assert root.level == logging.DEBUG
        assert logging.getLogger("apscheduler").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
