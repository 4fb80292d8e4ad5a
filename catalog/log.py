"""Настройка логирования каталога.

Все модули пишут в логгеры вида ``catalog.<модуль>`` через
``logging.getLogger(__name__)``; здесь настраивается общий логгер ``catalog``.
"""

import logging
import sys
from typing import Optional, Union

from . import config

LOGGER_NAME = "catalog"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(
    level: Union[int, str] = config.LOG_LEVEL,
    log_file: Optional[str] = config.LOG_FILE,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Настраивает логгер каталога: консоль и (опционально) файл.
    Повторный вызов заменяет ранее добавленные обработчики.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")

    if log_to_console:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(level)
        console.setFormatter(formatter)
        logger.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Логгер ``catalog.<name>`` (или сам ``catalog``)"""
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
