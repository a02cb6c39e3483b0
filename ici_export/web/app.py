"""Создание Flask приложения."""

from typing import Optional

from flask import Flask
from ici_export.config.settings import get_settings
from ici_export.modules.repository import InMemoryRepository, MetadataRepository, load_metadata_file
from ici_export.modules.urls import BaseUrlBuilder, UrlBuilder
from ici_export.utils.logger import setup_logger


def create_app(
    repository: Optional[MetadataRepository] = None,
    url_builder: Optional[UrlBuilder] = None,
) -> Flask:
    """
    Создание и настройка Flask приложения.

    Args:
        repository: Источник метаданных (по умолчанию - JSON из ICI_DATA_FILE)
        url_builder: Построитель URL статей (по умолчанию - от ICI_BASE_URL)

    Returns:
        Настроенное Flask приложение
    """
    app = Flask(__name__)
    settings = get_settings()

    # Настройка логирования
    logger = setup_logger(
        log_file=settings.log_file,
        log_level=settings.log_level
    )
    app.logger = logger

    if repository is None:
        if settings.data_file is not None:
            repository = load_metadata_file(settings.data_file)
        else:
            logger.warning("ICI_DATA_FILE не задан, используется пустой репозиторий")
            repository = InMemoryRepository()
    if url_builder is None:
        url_builder = BaseUrlBuilder(settings.base_url)

    app.extensions["ici_repository"] = repository
    app.extensions["ici_url_builder"] = url_builder

    # Регистрация роутов
    from ici_export.web.export import export_bp
    app.register_blueprint(export_bp)

    return app
