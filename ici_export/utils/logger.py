"""Настройка логирования."""

import logging
import sys
from pathlib import Path
from typing import Optional


def setup_logger(
    name: str = "ici_export",
    log_file: Optional[str] = None,
    log_level: str = "INFO"
) -> logging.Logger:
    """
    Настройка логгера.

    Args:
        name: Имя логгера
        log_file: Путь к файлу лога (опционально)
        log_level: Уровень логирования

    Returns:
        Настроенный логгер
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Удаление существующих обработчиков
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    # Формат логов
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # Консольный обработчик
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Файловый обработчик (если указан)
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = "ici_export") -> logging.Logger:
    """
    Получить логгер модуля.

    Обработчики не добавляются: записи уходят в логгер ``ici_export``,
    который настраивает setup_logger при запуске приложения.

    Args:
        name: Имя логгера

    Returns:
        Логгер
    """
    return logging.getLogger(name)
