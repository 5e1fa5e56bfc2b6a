"""Tests for the rotating file log under the data root."""

import logging

from stock_count.logging_setup import setup_logging

from conftest import _drop_log_handlers


def _ours(lg, log_path):
    return [h for h in lg.handlers if getattr(h, "baseFilename", "") == str(log_path.absolute())]


def test_writes_formatted_lines(settings, tmp_path):
    log_path = setup_logging(settings)
    try:
        logging.getLogger("stock_count.checks").info("seeded 3 rows")
        for h in _ours(logging.getLogger(), log_path):
            h.flush()
        text = log_path.read_text(encoding="utf-8")
        assert " INFO stock_count.checks - seeded 3 rows" in text
    finally:
        _drop_log_handlers(tmp_path)


def test_setup_is_idempotent(settings, tmp_path):
    log_path = setup_logging(settings)
    setup_logging(settings)
    try:
        assert len(_ours(logging.getLogger(), log_path)) == 1
        assert len(_ours(logging.getLogger("uvicorn"), log_path)) == 1
    finally:
        _drop_log_handlers(tmp_path)
