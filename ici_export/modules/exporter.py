"""
Выгрузка журнала в формат ICI: выбор выпусков, построение, валидация, запись.
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Optional

from lxml import etree

from ici_export.config.settings import get_settings
from ici_export.models.metadata import Issue, Journal
from ici_export.modules.repository import MetadataRepository
from ici_export.modules.urls import UrlBuilder
from ici_export.modules.xml_builder import BuildOptions, IciXmlBuilder
from ici_export.modules.xml_validator import ValidationResult, validate
from ici_export.utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_FILENAME = "journal_import_ici.xsd"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


class SelectionError(ValueError):
    """Не выбраны выпуски для выгрузки; пользователю нужно повторить выбор."""


class JournalNotFoundError(LookupError):
    """Журнал не найден."""


def parse_bool(value: Any, default: bool = True) -> bool:
    """
    Разбор флага из строки, числа или bool.

    Args:
        value: Значение флага (None - не передан)
        default: Значение по умолчанию

    Returns:
        Булево значение
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return default


def attachment_filename(journal: Journal) -> str:
    """Имя файла выгрузки для Content-Disposition."""
    return f"copernicus-{journal.id}.xml"


def to_bytes(tree: etree._ElementTree) -> bytes:
    """Сериализация документа: UTF-8, с XML декларацией и отступами."""
    return etree.tostring(tree, encoding="UTF-8", xml_declaration=True, pretty_print=True)


@dataclass
class ExportResult:
    """Результат выгрузки: документ и (если проводилась) валидация."""

    journal: Journal
    tree: etree._ElementTree
    validation: Optional[ValidationResult] = None

    @property
    def content(self) -> bytes:
        return to_bytes(self.tree)


class IciExporter:
    """Выгрузка выбранных выпусков журнала в XML документ ICI."""

    def __init__(
        self,
        repository: MetadataRepository,
        url_builder: UrlBuilder,
        options: Optional[BuildOptions] = None,
    ):
        """
        Инициализация.

        Args:
            repository: Источник метаданных
            url_builder: Построитель URL статей
            options: Параметры выгрузки (по умолчанию - из настроек)
        """
        self.repository = repository
        self.url_builder = url_builder
        self.options = options or BuildOptions.from_settings()
        self.logger = logger

    def get_journal(self, journal_id: Any) -> Journal:
        """
        Журнал по идентификатору.

        Raises:
            JournalNotFoundError: Если журнал не найден
        """
        journal = self.repository.get_journal(journal_id)
        if journal is None:
            raise JournalNotFoundError(f"Журнал не найден: {journal_id}")
        return journal

    def select_issues(self, journal: Journal, issue_ids: Optional[Iterable[Any]]) -> List[Issue]:
        """
        Выпуски для выгрузки; чужие и неизвестные молча отбрасываются.

        Raises:
            SelectionError: Если выпуски не выбраны
        """
        ids = [issue_id for issue_id in (issue_ids or []) if str(issue_id).strip() != ""]
        if not ids:
            raise SelectionError("Не выбраны выпуски для выгрузки")
        issues = self.repository.get_issues(journal, ids)
        if len(issues) < len(ids):
            self.logger.info(f"Отброшено выпусков не из журнала {journal.id}: {len(ids) - len(issues)}")
        return issues

    def resolve_schema_path(self) -> Optional[Path]:
        """
        Путь к XSD схеме: из параметров, иначе ``schemas/journal_import_ici.xsd``,
        иначе ``journal_import_ici.xsd`` в корне проекта.

        Returns:
            Путь к существующему файлу или None (валидация недоступна)
        """
        if self.options.schema_path:
            path = Path(self.options.schema_path)
            return path if path.exists() else None
        settings = get_settings()
        for candidate in (settings.schemas_dir / SCHEMA_FILENAME, settings.base_dir / SCHEMA_FILENAME):
            if candidate.exists():
                return candidate
        return None

    def validate(self, tree: etree._ElementTree) -> Optional[ValidationResult]:
        """
        Валидация по XSD, если она включена и схема доступна.

        Диагностики пишутся в лог; документ не блокируется.

        Returns:
            ValidationResult или None, если валидация не выполнялась
        """
        if not self.options.validate_schema:
            self.logger.debug("Валидация по XSD отключена")
            return None
        schema_path = self.resolve_schema_path()
        if schema_path is None:
            self.logger.info("XSD схема не найдена, валидация пропущена")
            return None

        result = validate(tree, schema_path)
        if result.ok:
            self.logger.info(f"[OK] Документ соответствует схеме {schema_path.name}")
        else:
            for error in result.errors:
                self.logger.warning(f"ICI XSD error [{error.severity}] line {error.line}: {error.message}")
        return result

    def build(self, journal_id: Any, issue_ids: Optional[Iterable[Any]]) -> ExportResult:
        """
        Построить (и при необходимости проверить) документ.

        Args:
            journal_id: Идентификатор журнала
            issue_ids: Идентификаторы выбранных выпусков

        Returns:
            ExportResult

        Raises:
            JournalNotFoundError: Если журнал не найден
            SelectionError: Если выпуски не выбраны
        """
        journal = self.get_journal(journal_id)
        issues = self.select_issues(journal, issue_ids)
        builder = IciXmlBuilder(journal, issues, self.repository, self.url_builder, self.options)
        tree = builder.build_document()
        validation = self.validate(tree)
        return ExportResult(journal=journal, tree=tree, validation=validation)

    def export_to_file(self, journal_id: Any, issue_ids: Optional[Iterable[Any]], output_path: Path) -> ExportResult:
        """
        Записать документ в файл целиком или не записывать вовсе.

        Документ пишется во временный файл рядом с целевым и затем
        атомарно переименовывается. При ошибке временный файл удаляется.

        Raises:
            OSError: Если файл не удалось записать
        """
        result = self.build(journal_id, issue_ids)
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_name = tempfile.mkstemp(
            prefix=f".{output_path.name}.", suffix=".tmp", dir=str(output_path.parent)
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(result.content)
            os.replace(temp_name, output_path)
        except BaseException:
            if os.path.exists(temp_name):
                os.unlink(temp_name)
            raise

        self.logger.info(f"Документ ICI записан: {output_path}")
        return result
