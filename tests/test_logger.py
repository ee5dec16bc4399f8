"""Logger setup."""

import logging

from league_engine.config import Config
from league_engine.utils.logger import setup_logger


def test_console_only_without_log_dir(monkeypatch):
    monkeypatch.setattr(Config, 'LOG_DIR', '')
    logger = setup_logger('league_engine.tests.console_only')
    assert len(logger.handlers) == 1
    assert setup_logger('league_engine.tests.console_only') is logger
    assert len(logger.handlers) == 1


def test_daily_file_in_log_dir(monkeypatch, tmp_path):
    monkeypatch.setattr(Config, 'LOG_DIR', str(tmp_path / 'logs'))
    logger = setup_logger('league_engine.tests.with_file', level=logging.WARNING)
    try:
        assert logger.level == logging.WARNING
        files = list((tmp_path / 'logs').glob('league_engine_*.log'))
        assert len(files) == 1
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
