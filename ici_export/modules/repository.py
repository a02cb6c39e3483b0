"""
Доступ к метаданным журнала.

Хранение журналов, выпусков и статей принадлежит хост-приложению;
построитель XML обращается к нему только через ``MetadataRepository``.
``InMemoryRepository`` держит записи в памяти и умеет загружать их из
JSON-выгрузки.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ici_export.models.metadata import Issue, Journal, Publication, Submission
from ici_export.utils.logger import get_logger

logger = get_logger(__name__)


class MetadataFormatError(ValueError):
    """Некорректная структура JSON-выгрузки метаданных."""


def _same_id(left: Any, right: Any) -> bool:
    """Сравнение идентификаторов без учёта типа (1 == "1")."""
    if left is None or right is None:
        return False
    return str(left) == str(right)


class MetadataRepository(ABC):
    """Интерфейс источника метаданных."""

    @abstractmethod
    def get_journal(self, journal_id: Any) -> Optional[Journal]:
        """Журнал по идентификатору или None."""

    @abstractmethod
    def get_issue(self, issue_id: Any) -> Optional[Issue]:
        """Выпуск по идентификатору или None."""

    @abstractmethod
    def get_published_issues(self, journal: Journal) -> List[Issue]:
        """Опубликованные выпуски журнала в порядке ``seq``."""

    @abstractmethod
    def get_submissions(self, journal: Journal, issue: Issue) -> List[Submission]:
        """Статьи журнала, привязанные к выпуску."""

    @abstractmethod
    def get_publications(self, submission: Submission) -> List[Publication]:
        """Все версии публикации статьи."""

    def get_issues(self, journal: Journal, issue_ids: Iterable[Any]) -> List[Issue]:
        """
        Выпуски по списку идентификаторов, только принадлежащие журналу.

        Неизвестные и чужие выпуски молча отбрасываются.

        Args:
            journal: Журнал
            issue_ids: Идентификаторы выпусков

        Returns:
            Список выпусков в порядке запроса
        """
        issues = []
        for issue_id in issue_ids:
            issue = self.get_issue(issue_id)
            if issue is None:
                logger.debug(f"Выпуск {issue_id} не найден")
                continue
            if not _same_id(issue.journal_id, journal.id):
                logger.debug(f"Выпуск {issue_id} не принадлежит журналу {journal.id}")
                continue
            issues.append(issue)
        return issues

    def publication_for_issue(self, submission: Submission, issue: Issue) -> Optional[Publication]:
        """
        Версия публикации, привязанная к выпуску.

        Сначала проверяется текущая публикация, затем перебираются все версии.
        """
        current = submission.current_publication
        if current is not None and _same_id(current.issue_id, issue.id):
            return current
        for publication in self.get_publications(submission):
            if _same_id(publication.issue_id, issue.id):
                return publication
        return None


class InMemoryRepository(MetadataRepository):
    """Репозиторий метаданных в памяти."""

    def __init__(
        self,
        journals: Optional[Iterable[Journal]] = None,
        issues: Optional[Iterable[Issue]] = None,
        submissions: Optional[Iterable[Submission]] = None,
    ):
        self.journals: Dict[str, Journal] = {str(j.id): j for j in journals or []}
        self.issues: Dict[str, Issue] = {str(i.id): i for i in issues or []}
        self.submissions: List[Submission] = list(submissions or [])

    def get_journal(self, journal_id: Any) -> Optional[Journal]:
        return self.journals.get(str(journal_id))

    def get_issue(self, issue_id: Any) -> Optional[Issue]:
        return self.issues.get(str(issue_id))

    def get_published_issues(self, journal: Journal) -> List[Issue]:
        issues = [
            issue for issue in self.issues.values()
            if issue.published and _same_id(issue.journal_id, journal.id)
        ]
        return sorted(issues, key=lambda issue: issue.seq)

    def get_submissions(self, journal: Journal, issue: Issue) -> List[Submission]:
        result = []
        for submission in self.submissions:
            if not _same_id(submission.journal_id, journal.id):
                continue
            if any(_same_id(p.issue_id, issue.id) for p in submission.publications):
                result.append(submission)
        return result

    def get_publications(self, submission: Submission) -> List[Publication]:
        return list(submission.publications)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InMemoryRepository":
        """
        Создать репозиторий из словаря выгрузки.

        Ожидаемые ключи: ``journals``, ``issues``, ``submissions`` (списки).

        Raises:
            MetadataFormatError: Если структура выгрузки некорректна
        """
        if not isinstance(data, Mapping):
            raise MetadataFormatError("Выгрузка метаданных должна быть JSON-объектом")
        for key in ("journals", "issues", "submissions"):
            if not isinstance(data.get(key, []), list):
                raise MetadataFormatError(f"Поле '{key}' должно быть списком")
        try:
            return cls(
                journals=[Journal.from_source(j) for j in data.get("journals", [])],
                issues=[Issue.from_source(i) for i in data.get("issues", [])],
                submissions=[Submission.from_source(s) for s in data.get("submissions", [])],
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise MetadataFormatError(f"Некорректная запись в выгрузке: {e}") from e


def load_metadata_file(file_path: Path) -> InMemoryRepository:
    """
    Загрузка JSON-выгрузки метаданных.

    Args:
        file_path: Путь к JSON файлу

    Returns:
        Заполненный InMemoryRepository

    Raises:
        FileNotFoundError: Если файл не найден
        MetadataFormatError: Если JSON некорректен
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Файл не найден: {file_path}")

    logger.info(f"Загрузка метаданных: {file_path}")
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Ошибка парсинга JSON: {e}")
        raise MetadataFormatError(f"Ошибка парсинга JSON: {e}") from e

    repository = InMemoryRepository.from_dict(data)
    logger.info(
        f"Загружено: журналов {len(repository.journals)}, "
        f"выпусков {len(repository.issues)}, статей {len(repository.submissions)}"
    )
    return repository
