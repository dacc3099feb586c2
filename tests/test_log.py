"""Tests for the ripdiff logger."""

import json

import pytest

from ripdiff.utils.log import enable_file_logging, get_logger


@pytest.fixture
def file_logger():
    logger = get_logger()
    yield logger
    logger.detach_file_handler()


def test_file_log_carries_component_and_context(tmp_path, file_logger):
    path = enable_file_logging(tmp_path / "logs" / "ripdiff.log")
    file_logger.warning("[parser] Bad hunk header", extra={"header": "@@ x @@"})

    line = path.read_text(encoding="utf-8").strip().splitlines()[-1]
    message, context = line.split(" | ", 1)
    assert "[WARNING] [parser] Bad hunk header" in message
    assert json.loads(context) == {"header": "@@ x @@"}


def test_debug_records_reach_the_file(tmp_path, file_logger):
    path = enable_file_logging(tmp_path / "debug.log")
    file_logger.debug("[session] Loaded %d files", 3)

    assert "[DEBUG] [session] Loaded 3 files" in path.read_text(encoding="utf-8")


def test_reattaching_the_same_file_keeps_one_handler(tmp_path, file_logger):
    path = tmp_path / "same.log"
    enable_file_logging(path)
    handlers = len(file_logger.logger.handlers)

    enable_file_logging(path)
    assert len(file_logger.logger.handlers) == handlers
    assert file_logger.log_file == path.resolve()

    file_logger.detach_file_handler()
    assert file_logger.log_file is None
