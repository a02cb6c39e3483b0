"""
Модели метаданных журнала, которые читает построитель XML.

Записи приходят из внешнего слоя хранения либо как объекты, либо как
словари полей (например, из JSON-выгрузки). Каждая модель имеет
``from_source``, который один раз приводит такую запись к единому виду,
чтобы построитель не разбирал форму входных данных.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from ici_export.utils.localization import pick_by_locales, preferred_latin_locales

# Локализованное значение: строка или словарь локаль -> строка
LocalizedValue = Union[str, Dict[str, str], None]

_DATE_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


def _get(source: Any, *keys: str, default: Any = None) -> Any:
    """
    Прочитать первое найденное поле записи.

    Args:
        source: Словарь или объект
        keys: Варианты имени поля (snake_case и camelCase)
        default: Значение по умолчанию

    Returns:
        Значение поля или default
    """
    for key in keys:
        if isinstance(source, Mapping):
            if key in source and source[key] is not None:
                return source[key]
        else:
            value = getattr(source, key, None)
            if value is not None and not callable(value):
                return value
    return default


def _method(source: Any, *names: str) -> Optional[Callable]:
    """Найти метод объекта по одному из имён (для словарей всегда None)."""
    if isinstance(source, Mapping):
        return None
    for name in names:
        candidate = getattr(source, name, None)
        if callable(candidate):
            return candidate
    return None


def parse_date(value: Any) -> Optional[date]:
    """
    Привести хранимую дату к ``date``.

    Принимает ``date``/``datetime`` и строки вида ``YYYY-MM-DD`` или
    ``YYYY-MM-DD HH:MM:SS``. Нераспознанные значения дают None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    match = _DATE_PREFIX.match(text)
    if match:
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            return None
    return None


def _as_bag(value: Any) -> LocalizedValue:
    """Локализованное поле: строка, словарь строк или None."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return {str(k): v for k, v in value.items() if isinstance(v, str)}
    return str(value)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass
class Journal:
    """Журнал."""

    id: Any
    online_issn: str = ""
    print_issn: str = ""
    primary_locale: str = "en_US"
    license_url: str = ""
    path: str = ""

    @property
    def issn(self) -> str:
        """ISSN для атрибута <journal>: электронный, иначе печатный."""
        return (self.online_issn or self.print_issn or "").strip()

    @classmethod
    def from_source(cls, source: Any) -> "Journal":
        if isinstance(source, cls):
            return source
        return cls(
            id=_get(source, "id"),
            online_issn=_as_text(_get(source, "online_issn", "onlineIssn")),
            print_issn=_as_text(_get(source, "print_issn", "printIssn")),
            primary_locale=_as_text(_get(source, "primary_locale", "primaryLocale", default="en_US")),
            license_url=_as_text(_get(source, "license_url", "licenseUrl")),
            path=_as_text(_get(source, "path", "urlPath")),
        )


@dataclass
class Issue:
    """Выпуск журнала."""

    id: Any
    journal_id: Any
    volume: str = ""
    number: str = ""
    year: str = ""
    date_published: Optional[date] = None
    published: bool = True
    seq: int = 0

    @classmethod
    def from_source(cls, source: Any) -> "Issue":
        if isinstance(source, cls):
            return source
        return cls(
            id=_get(source, "id"),
            journal_id=_get(source, "journal_id", "journalId"),
            volume=_as_text(_get(source, "volume")),
            number=_as_text(_get(source, "number")),
            year=_as_text(_get(source, "year")),
            date_published=parse_date(_get(source, "date_published", "datePublished")),
            published=_as_bool(_get(source, "published", default=True)),
            seq=int(_get(source, "seq", default=0)),
        )


@dataclass
class Galley:
    """Файл статьи (гранка)."""

    id: Any
    label: str = ""
    file_type: str = ""

    @property
    def is_pdf(self) -> bool:
        return self.file_type.lower() == "application/pdf" or self.label.strip().upper() == "PDF"

    @classmethod
    def from_source(cls, source: Any) -> "Galley":
        if isinstance(source, cls):
            return source
        return cls(
            id=_get(source, "id"),
            label=_as_text(_get(source, "label")),
            file_type=_as_text(_get(source, "file_type", "fileType", "mimetype")),
        )


@dataclass
class Author:
    """
    Автор публикации.

    Необязательные возможности (список локализованных аффилиаций,
    локализованная аффилиация, локализованные данные по имени поля)
    хранятся как вызываемые объекты и определяются один раз в
    ``from_source``. Отсутствие возможности - это None, а не ошибка.
    """

    id: Any = None
    given_name: LocalizedValue = None
    family_name: LocalizedValue = None
    preferred_public_name: LocalizedValue = None
    email: str = ""
    orcid: str = ""
    orcid_verified: bool = False
    country: str = ""
    affiliation: LocalizedValue = None
    affiliation_names: Optional[Callable[[str], Iterable[str]]] = field(default=None, repr=False, compare=False)
    localized_affiliation: Optional[Callable[[str], Optional[str]]] = field(default=None, repr=False, compare=False)
    localized_data: Optional[Callable[[str, str], Optional[str]]] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_source(cls, source: Any) -> "Author":
        """
        Привести запись автора (объект или словарь полей) к ``Author``.

        Args:
            source: Запись автора

        Returns:
            Экземпляр Author
        """
        if isinstance(source, cls):
            return source

        verified_check = _method(source, "has_verified_orcid", "hasVerifiedOrcid")
        if verified_check is not None:
            orcid_verified = bool(verified_check())
        else:
            orcid_verified = _as_bool(
                _get(source, "orcid_verified", "orcidVerified", "orcidIsVerified", default=False)
            )

        email_getter = _method(source, "get_email", "getEmail")
        email = email_getter() if email_getter is not None else _get(source, "email")

        affiliation_names = _method(source, "get_localized_affiliation_names", "getLocalizedAffiliationNames")
        if affiliation_names is None:
            entries = _get(source, "affiliations")
            if isinstance(entries, (list, tuple)) and entries:
                affiliation_names = _affiliation_names_from_entries(list(entries))

        return cls(
            id=_get(source, "id"),
            given_name=_as_bag(_get(source, "given_name", "givenName")),
            family_name=_as_bag(_get(source, "family_name", "familyName")),
            preferred_public_name=_as_bag(_get(source, "preferred_public_name", "preferredPublicName")),
            email=_as_text(email).strip(),
            orcid=_as_text(_get(source, "orcid")).strip(),
            orcid_verified=orcid_verified,
            country=_as_text(_get(source, "country")).strip(),
            affiliation=_as_bag(_get(source, "affiliation")),
            affiliation_names=affiliation_names,
            localized_affiliation=_method(source, "get_localized_affiliation", "getLocalizedAffiliation"),
            localized_data=_method(source, "get_localized_data", "getLocalizedData"),
        )


def _affiliation_names_from_entries(entries: List[Any]) -> Callable[[str], List[str]]:
    """Список аффилиаций из выгрузки -> функция локализованных названий."""

    def names(locale: str) -> List[str]:
        result = []
        for entry in entries:
            if isinstance(entry, str):
                result.append(entry)
                continue
            bag = entry.get("name", entry) if isinstance(entry, Mapping) else None
            if isinstance(bag, str):
                result.append(bag)
            elif isinstance(bag, Mapping):
                value = bag.get(locale)
                if not isinstance(value, str) or not value.strip():
                    value = pick_by_locales(bag, [locale] + preferred_latin_locales())
                result.append(value)
        return result

    return names


@dataclass
class Publication:
    """Версия публикации статьи."""

    id: Any
    submission_id: Any = None
    issue_id: Any = None
    locale: str = ""
    title: LocalizedValue = None
    abstract: LocalizedValue = None
    keywords: Dict[str, List[str]] = field(default_factory=dict)
    authors: List[Author] = field(default_factory=list)
    primary_contact_id: Any = None
    doi: str = ""
    license_url: str = ""
    pages: str = ""
    citations_raw: str = ""
    galleys: List[Galley] = field(default_factory=list)
    date_published: Optional[date] = None

    @classmethod
    def from_source(cls, source: Any) -> "Publication":
        if isinstance(source, cls):
            return source
        keywords = _get(source, "keywords", default={})
        if not isinstance(keywords, Mapping):
            keywords = {}
        return cls(
            id=_get(source, "id"),
            submission_id=_get(source, "submission_id", "submissionId"),
            issue_id=_get(source, "issue_id", "issueId"),
            locale=_as_text(_get(source, "locale")),
            title=_as_bag(_get(source, "title")),
            abstract=_as_bag(_get(source, "abstract")),
            keywords={
                str(loc): [kw for kw in values if isinstance(kw, str)]
                for loc, values in keywords.items()
                if isinstance(values, (list, tuple))
            },
            authors=[Author.from_source(a) for a in _get(source, "authors", default=[])],
            primary_contact_id=_get(source, "primary_contact_id", "primaryContactId"),
            doi=_as_text(_get(source, "doi", "pub-id::doi")),
            license_url=_as_text(_get(source, "license_url", "licenseUrl")),
            pages=_as_text(_get(source, "pages")),
            citations_raw=_as_text(_get(source, "citations_raw", "citationsRaw")),
            galleys=[Galley.from_source(g) for g in _get(source, "galleys", default=[])],
            date_published=parse_date(_get(source, "date_published", "datePublished")),
        )


@dataclass
class Submission:
    """Статья (submission) со всеми версиями публикации."""

    id: Any
    journal_id: Any = None
    current_publication_id: Any = None
    publications: List[Publication] = field(default_factory=list)
    doi: str = ""

    @property
    def current_publication(self) -> Optional[Publication]:
        for publication in self.publications:
            if publication.id == self.current_publication_id:
                return publication
        return None

    @classmethod
    def from_source(cls, source: Any) -> "Submission":
        if isinstance(source, cls):
            return source
        submission = cls(
            id=_get(source, "id"),
            journal_id=_get(source, "journal_id", "journalId", "contextId"),
            current_publication_id=_get(source, "current_publication_id", "currentPublicationId"),
            publications=[Publication.from_source(p) for p in _get(source, "publications", default=[])],
            doi=_as_text(_get(source, "doi", "pub-id::doi")),
        )
        for publication in submission.publications:
            if publication.submission_id is None:
                publication.submission_id = submission.id
        return submission
