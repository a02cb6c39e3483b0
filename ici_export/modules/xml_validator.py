"""Модуль для валидации XML документов по XSD схемам."""

from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from lxml import etree
from lxml.etree import XMLSyntaxError, XMLSchemaParseError
from ici_export.utils.logger import get_logger

logger = get_logger(__name__)


def _create_strict_parser() -> etree.XMLParser:
    """
    Создает строгий парсер XML/XSD с сохранением line numbers.

    Returns:
        Настроенный XMLParser
    """
    return etree.XMLParser(
        recover=False,
        remove_blank_text=False,
        resolve_entities=False,
        huge_tree=True,
    )


@dataclass
class ValidationIssue:
    """Одна диагностика валидации."""

    severity: str
    line: int
    message: str
    column: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity,
            "line": self.line,
            "column": self.column,
            "message": self.message,
        }

    def __str__(self) -> str:
        return f"[{self.severity}] line {self.line}: {self.message}"


@dataclass
class ValidationResult:
    """Результат валидации: признак успеха и список диагностик."""

    ok: bool
    errors: List[ValidationIssue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "errors": [error.to_dict() for error in self.errors],
        }


def _parse_error_log(error_log: Any) -> List[ValidationIssue]:
    """
    Парсит lxml error_log с line/col в список диагностик.

    Args:
        error_log: Лог ошибок из lxml

    Returns:
        Список ValidationIssue
    """
    issues = []
    for err in error_log:
        line = getattr(err, "line", None) or 0
        column = getattr(err, "column", None) or 0
        message = getattr(err, "message", None) or str(err)
        severity = getattr(err, "level_name", None) or "ERROR"
        issues.append(ValidationIssue(
            severity=severity,
            line=line,
            message=message.strip(),
            column=column,
        ))
    return issues


class XMLValidator:
    """Класс для валидации XML документов по XSD схеме."""

    def __init__(self, schema_path: Optional[Path] = None):
        """
        Инициализация валидатора.

        Args:
            schema_path: Путь к XSD схеме (опционально)
        """
        self.logger = logger
        self.schema_path = schema_path
        self.schema: Optional[etree.XMLSchema] = None
        self.load_errors: List[ValidationIssue] = []

        if schema_path and Path(schema_path).exists():
            self.load_schema(Path(schema_path))

    def load_schema(self, schema_path: Path) -> bool:
        """
        Загрузка XSD схемы с проверкой:
        1) XSD на корректность синтаксиса (XMLSyntaxError)
        2) XSD на корректность как схемы (XMLSchemaParseError / компиляция)

        Ошибки загрузки сохраняются в ``load_errors``.

        Args:
            schema_path: Путь к XSD схеме

        Returns:
            True если схема загружена успешно
        """
        self.schema = None
        self.load_errors = []
        schema_path = Path(schema_path)

        if not schema_path.exists():
            self.logger.error(f"XSD файл не найден: {schema_path}")
            self.load_errors.append(ValidationIssue("ERROR", 0, f"XSD файл не найден: {schema_path}"))
            return False

        # (1) XSD синтаксис (это XML)
        try:
            schema_doc = etree.parse(str(schema_path), _create_strict_parser())
        except XMLSyntaxError as e:
            self.logger.error(f"[XSD:СИНТАКСИС] Ошибка разбора XSD как XML: {schema_path}")
            self.load_errors.extend(_parse_error_log(e.error_log) or [ValidationIssue("FATAL", 0, str(e))])
            for err in self.load_errors:
                self.logger.error(f"  Строка {err.line}, колонка {err.column}: {err.message}")
            return False
        except OSError as e:
            self.logger.error(f"[XSD:ФАЙЛ] Не удалось открыть XSD: {schema_path}\n  {e}")
            self.load_errors.append(ValidationIssue("ERROR", 0, f"Не удалось открыть XSD: {e}"))
            return False

        # (2) XSD компиляция (это уже "валидная схема")
        try:
            self.schema = etree.XMLSchema(schema_doc)
        except XMLSchemaParseError as e:
            self.logger.error(
                f"[XSD:СХЕМА] XSD синтаксически XML-корректна, но НЕ компилируется как XSD: {schema_path}"
            )
            self.load_errors.extend(_parse_error_log(e.error_log) or [ValidationIssue("ERROR", 0, str(e))])
            for err in self.load_errors:
                self.logger.error(f"  Строка {err.line}, колонка {err.column}: {err.message}")
            return False

        self.schema_path = schema_path
        self.logger.info(f"XSD схема загружена: {schema_path}")
        return True

    def validate_tree(self, tree: Union[etree._ElementTree, etree._Element]) -> ValidationResult:
        """
        Валидация дерева в памяти. Дерево не изменяется.

        Номера строк в диагностиках соответствуют сериализованному
        документу с отступами, поэтому дерево перед проверкой
        сериализуется и разбирается заново.

        Args:
            tree: Документ или корневой элемент

        Returns:
            ValidationResult
        """
        content = etree.tostring(tree, encoding="UTF-8", xml_declaration=True, pretty_print=True)
        return self.validate_xml_content(content)

    def validate_xml_file(self, xml_path: Path) -> ValidationResult:
        """
        Валидация XML файла.

        Args:
            xml_path: Путь к XML файлу

        Returns:
            ValidationResult
        """
        if not xml_path.exists():
            return ValidationResult(ok=False, errors=[
                ValidationIssue("ERROR", 0, f"Файл не найден: {xml_path}")
            ])
        try:
            content = xml_path.read_bytes()
        except OSError as e:
            return ValidationResult(ok=False, errors=[
                ValidationIssue("ERROR", 0, f"Не удалось прочитать файл: {e}")
            ])
        result = self.validate_xml_content(content)
        if result.ok:
            self.logger.info(f"[OK] XML соответствует схеме: {xml_path.name}")
        else:
            self.logger.warning(f"[INVALID] XML НЕ соответствует XSD: {xml_path.name}")
        return result

    def validate_xml_content(self, xml_content: bytes) -> ValidationResult:
        """
        Валидация XML из памяти.

        Args:
            xml_content: Содержимое XML документа в виде bytes

        Returns:
            ValidationResult
        """
        if self.schema is None:
            errors = self.load_errors or [ValidationIssue("ERROR", 0, "XSD схема не загружена")]
            return ValidationResult(ok=False, errors=list(errors))

        try:
            xml_doc = etree.parse(BytesIO(xml_content), _create_strict_parser())
        except XMLSyntaxError as e:
            errors = _parse_error_log(e.error_log) or [ValidationIssue("FATAL", e.lineno or 0, str(e))]
            return ValidationResult(ok=False, errors=errors)

        if self.schema.validate(xml_doc):
            return ValidationResult(ok=True)

        errors = _parse_error_log(self.schema.error_log)
        self.logger.warning(f"Найдено ошибок: {len(errors)}")
        return ValidationResult(ok=False, errors=errors)


def validate(tree: Union[etree._ElementTree, etree._Element], schema_path: Path) -> ValidationResult:
    """
    Проверить дерево по XSD схеме. Никогда не выбрасывает исключение
    из-за несоответствия документа схеме.

    Args:
        tree: Документ или корневой элемент
        schema_path: Путь к XSD схеме

    Returns:
        ValidationResult
    """
    validator = XMLValidator()
    if not validator.load_schema(Path(schema_path)):
        return ValidationResult(ok=False, errors=list(validator.load_errors))
    return validator.validate_tree(tree)
