import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from league_engine.config import Config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _daily_log_file(log_dir: str) -> Path:
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path / f'league_engine_{datetime.now().strftime("%Y%m%d")}.log'


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Console logger for a league engine module, plus a daily file when LOG_DIR is set."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = level if level is not None else (logging.DEBUG if Config.DEBUG else logging.INFO)
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Empty LOG_DIR keeps tests and one-off rollovers off the filesystem
    if Config.LOG_DIR:
        file_handler = logging.FileHandler(_daily_log_file(Config.LOG_DIR), encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
