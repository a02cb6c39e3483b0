"""Настройки приложения."""

from typing import Optional
from pathlib import Path
import os


def _env_flag(name: str, default: bool) -> bool:
    """Прочитать булев флаг из переменной окружения."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Класс для управления настройками приложения."""

    def __init__(self):
        """Инициализация настроек."""
        # Базовые пути
        self.base_dir: Path = Path(__file__).parent.parent.parent
        self.logs_dir: Path = self.base_dir / "logs"
        self.schemas_dir: Path = self.base_dir / "schemas"  # Директория для XSD схем

        # Создание необходимых директорий
        self._create_directories()

        # Настройки логирования
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.log_file: Optional[str] = str(self.logs_dir / "ici_export.log")

        # Настройки выгрузки ICI
        schema_path = os.getenv("ICI_SCHEMA_PATH")
        self.schema_path: Optional[Path] = Path(schema_path) if schema_path else None
        self.validate_schema: bool = _env_flag("ICI_VALIDATE_SCHEMA", True)
        self.force_affiliation_fallback: bool = _env_flag("ICI_FORCE_AFFILIATION_FALLBACK", False)
        self.affiliation_fallback_text: str = os.getenv("ICI_AFFILIATION_FALLBACK_TEXT", "No data")
        self.base_url: str = os.getenv("ICI_BASE_URL", "http://localhost:5000")
        data_file = os.getenv("ICI_DATA_FILE")
        self.data_file: Optional[Path] = Path(data_file) if data_file else None

        # Настройки веб-приложения
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "5000"))

    def _create_directories(self) -> None:
        """Создание необходимых директорий, если они не существуют."""
        self.logs_dir.mkdir(exist_ok=True)
        self.schemas_dir.mkdir(exist_ok=True)


# Глобальный экземпляр настроек
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Получить экземпляр настроек (singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Сбросить кэшированные настройки (перечитать окружение при следующем вызове)."""
    global _settings
    _settings = None
