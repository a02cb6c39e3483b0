"""Построение URL статей для выгрузки."""

from abc import ABC, abstractmethod
from typing import Any


class UrlBuilder(ABC):
    """Источник URL статьи и файла статьи; устройство URL определяет хост-приложение."""

    @abstractmethod
    def article_view_url(self, submission_id: Any) -> str:
        """URL страницы статьи."""

    @abstractmethod
    def article_download_url(self, submission_id: Any, galley_id: Any) -> str:
        """URL скачивания файла статьи."""


class BaseUrlBuilder(UrlBuilder):
    """URL вида ``<base>/article/view/<id>`` и ``<base>/article/download/<id>/<file>``."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    def article_view_url(self, submission_id: Any) -> str:
        return f"{self.base_url}/article/view/{submission_id}"

    def article_download_url(self, submission_id: Any, galley_id: Any) -> str:
        return f"{self.base_url}/article/download/{submission_id}/{galley_id}"
