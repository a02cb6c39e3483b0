"""
Построение XML документа импорта Index Copernicus (ICI).

Структура документа::

    <ici-import>
      <journal issn="..."/>              всегда пустой, ISSN только в атрибуте
      <issue number volume year publicationDate numberOfArticles>
        <article>
          <type>ORIGINAL_ARTICLE</type>
          <languageVersion language="..">...</languageVersion>*
          <authors><author>...</author>+</authors>
          <references><reference>...</reference>+</references>?
        </article>*
      </issue>*
    </ici-import>

Порядок дочерних элементов задаётся схемой ICI и не должен меняться.
Неполные записи (автор без фамилии, короткая ссылка, пустая языковая
версия) отбрасываются без прерывания построения.
"""

import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence

from lxml import etree, html

from ici_export.config.settings import get_settings
from ici_export.models.metadata import Issue, Journal, Publication, Submission
from ici_export.modules.authors import AuthorResolver
from ici_export.modules.doi import extract_doi_from_text, normalize_doi
from ici_export.modules.licenses import map_cc_short_name
from ici_export.modules.repository import MetadataRepository
from ici_export.modules.urls import UrlBuilder
from ici_export.utils.localization import get_from_bag, locale_to_lang_code
from ici_export.utils.logger import get_logger

logger = get_logger(__name__)

ARTICLE_TYPE = "ORIGINAL_ARTICLE"

# Минимальная длина текста ссылки (referenceLength в схеме)
MIN_REFERENCE_LENGTH = 25

_PAGE_RANGE = re.compile(r"([0-9]+)\s*-\s*([0-9]+)")
_E_LOCATION = re.compile(r"(e[0-9]+)", re.IGNORECASE)
_SINGLE_PAGE = re.compile(r"^\s*([0-9]+)\s*$")
_LINE_BREAK = re.compile(r"\r\n|\n|\r")
# Символы, недопустимые в XML 1.0
_INVALID_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


@dataclass
class BuildOptions:
    """Параметры выгрузки."""

    validate_schema: bool = True
    schema_path: Optional[Path] = None
    force_affiliation_fallback: bool = False
    affiliation_fallback_text: str = "No data"

    @classmethod
    def from_settings(cls) -> "BuildOptions":
        """Параметры по умолчанию из конфигурации."""
        settings = get_settings()
        return cls(
            validate_schema=settings.validate_schema,
            schema_path=settings.schema_path,
            force_affiliation_fallback=settings.force_affiliation_fallback,
            affiliation_fallback_text=settings.affiliation_fallback_text,
        )


def format_date(value: Optional[date]) -> str:
    """Дата в формате YYYY-MM-DD или пустая строка."""
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d")


def clean_text(value: str) -> str:
    """Удалить символы, которые нельзя записать в XML."""
    return _INVALID_XML_CHARS.sub("", value)


def strip_html(value: str) -> str:
    """Текст аннотации без HTML разметки."""
    if not value.strip():
        return ""
    try:
        fragment = html.fragment_fromstring(value, create_parent="div")
    except (etree.ParserError, ValueError):
        return re.sub(r"<[^>]+>", "", value).strip()
    return fragment.text_content().strip()


def parse_pages(pages: str) -> tuple:
    """
    Первая и последняя страница из свободного текста.

    ``12-20`` -> ("12", "20"); ``7`` -> ("7", ""); ``e123`` -> ("e123", "").
    """
    if not pages:
        return "", ""
    match = _PAGE_RANGE.search(pages)
    if match:
        return match.group(1), match.group(2)
    match = _E_LOCATION.search(pages) or _SINGLE_PAGE.match(pages)
    if match:
        return match.group(1), ""
    return "", ""


class IciXmlBuilder:
    """Построитель XML документа ICI для выбранных выпусков журнала."""

    def __init__(
        self,
        journal: Journal,
        issues: Sequence[Issue],
        repository: MetadataRepository,
        url_builder: UrlBuilder,
        options: Optional[BuildOptions] = None,
    ):
        """
        Инициализация построителя.

        Args:
            journal: Журнал
            issues: Выпуски (уже отфильтрованные по журналу)
            repository: Источник статей и публикаций
            url_builder: Построитель URL статей
            options: Параметры выгрузки
        """
        self.journal = journal
        self.issues = list(issues)
        self.repository = repository
        self.url_builder = url_builder
        self.options = options or BuildOptions()
        self.logger = logger

    def build_document(self) -> etree._ElementTree:
        """
        Построить документ для выбранных выпусков.

        Каждый вызов создаёт новое дерево.

        Returns:
            Дерево lxml с корнем <ici-import>
        """
        root = etree.Element("ici-import")

        journal_elem = etree.SubElement(root, "journal")
        if self.journal.issn:
            journal_elem.set("issn", clean_text(self.journal.issn))

        for issue in self.issues:
            if str(issue.journal_id) != str(self.journal.id):
                self.logger.info(f"Выпуск {issue.id} не принадлежит журналу {self.journal.id}, пропущен")
                continue
            root.append(self._build_issue(issue))

        self.logger.info(f"Документ ICI построен: журнал {self.journal.id}, выпусков {len(root) - 1}")
        return etree.ElementTree(root)

    def _build_issue(self, issue: Issue) -> etree._Element:
        """<issue> со статьями."""
        issue_elem = etree.Element("issue")
        issue_elem.set("number", clean_text(issue.number or ""))
        issue_elem.set("volume", clean_text(issue.volume or ""))
        issue_elem.set("year", clean_text(issue.year or ""))
        if issue.date_published is not None:
            issue_elem.set("publicationDate", format_date(issue.date_published))

        number_of_articles = 0
        for submission in self.repository.get_submissions(self.journal, issue):
            publication = self.repository.publication_for_issue(submission, issue)
            if publication is None:
                self.logger.debug(f"Статья {submission.id}: нет публикации в выпуске {issue.id}")
                continue
            try:
                article = self._build_article(submission, publication, issue)
            except (ValueError, TypeError, AttributeError, KeyError) as e:
                self.logger.warning(f"Статья {submission.id} пропущена: ошибка данных: {e}")
                continue
            if article is None:
                continue
            issue_elem.append(article)
            number_of_articles += 1

        issue_elem.set("numberOfArticles", str(number_of_articles))
        return issue_elem

    def _build_article(
        self, submission: Submission, publication: Publication, issue: Issue
    ) -> Optional[etree._Element]:
        """<article> или None, если у статьи нет ни одного полного автора."""
        article = etree.Element("article")
        self._text(article, "type", ARTICLE_TYPE)

        for locale in self._collect_locales(publication):
            language_version = self._build_language_version(submission, publication, issue, locale)
            if len(language_version):
                article.append(language_version)

        authors = self._build_authors(publication)
        if not len(authors):
            self.logger.info(f"Статья {submission.id} пропущена: нет авторов с именем и фамилией")
            return None
        article.append(authors)

        references = self._build_references(publication)
        if references is not None:
            article.append(references)

        return article

    @staticmethod
    def _collect_locales(publication: Publication) -> List[str]:
        """Объединение локалей названия, аннотации и ключевых слов."""
        locales: List[str] = []
        for bag in (publication.title, publication.abstract, publication.keywords):
            if isinstance(bag, dict):
                for locale in bag:
                    if isinstance(locale, str) and locale and locale not in locales:
                        locales.append(locale)
        if not locales and publication.locale:
            locales.append(publication.locale)
        return locales

    def _build_language_version(
        self, submission: Submission, publication: Publication, issue: Issue, locale: str
    ) -> etree._Element:
        """<languageVersion> для одной локали."""
        lv = etree.Element("languageVersion")
        lv.set("language", locale_to_lang_code(locale))

        title = get_from_bag(publication.title, locale)
        if title:
            self._text(lv, "title", title)

        abstract = strip_html(get_from_bag(publication.abstract, locale))
        if abstract:
            self._text(lv, "abstract", abstract)

        keywords = [kw.strip() for kw in publication.keywords.get(locale, []) if kw and kw.strip()]
        if keywords:
            keywords_elem = etree.SubElement(lv, "keywords")
            for keyword in keywords:
                self._text(keywords_elem, "keyword", keyword)

        for galley in publication.galleys:
            if galley.is_pdf:
                self._text(lv, "pdfFileUrl", self.url_builder.article_download_url(submission.id, galley.id))
                break

        self._text(lv, "articleUrl", self.url_builder.article_view_url(submission.id))

        publication_date = format_date(publication.date_published or issue.date_published)
        if publication_date:
            self._text(lv, "publicationDate", publication_date)

        page_from, page_to = parse_pages(publication.pages)
        if page_from:
            self._text(lv, "pageFrom", page_from)
        if page_to:
            self._text(lv, "pageTo", page_to)

        doi = normalize_doi(publication.doi) or normalize_doi(submission.doi)
        if doi:
            self._text(lv, "doi", doi)

        license_url = (publication.license_url or self.journal.license_url or "").strip()
        if license_url:
            license_elem = self._text(lv, "license", license_url)
            license_elem.set("type", map_cc_short_name(license_url))

        return lv

    def _build_authors(self, publication: Publication) -> etree._Element:
        """
        <authors>. Для каждого автора в порядке схемы: name, name2?, surname,
        email?, order, instituteAffiliation?, country?, role, ORCID?
        """
        authors_elem = etree.Element("authors")
        resolver = AuthorResolver(
            publication_locale=publication.locale or self.journal.primary_locale,
            primary_contact_id=publication.primary_contact_id,
            force_affiliation_fallback=self.options.force_affiliation_fallback,
            affiliation_fallback_text=self.options.affiliation_fallback_text,
        )

        for order, author in enumerate(resolver.resolve_all(publication.authors), start=1):
            author_elem = etree.SubElement(authors_elem, "author")
            self._text(author_elem, "name", author.name)
            if author.middle_name:
                self._text(author_elem, "name2", author.middle_name)
            self._text(author_elem, "surname", author.surname)
            if author.email:
                self._text(author_elem, "email", author.email)
            self._text(author_elem, "order", str(order))

            affiliation = author.affiliation
            if not affiliation and self.options.force_affiliation_fallback:
                affiliation = self.options.affiliation_fallback_text
            if affiliation:
                self._text(author_elem, "instituteAffiliation", affiliation)

            if author.country:
                self._text(author_elem, "country", author.country)
            self._text(author_elem, "role", author.role)
            if author.orcid:
                self._text(author_elem, "ORCID", author.orcid)

        return authors_elem

    def _build_references(self, publication: Publication) -> Optional[etree._Element]:
        """<references>: unparsedContent, order, doi? для каждой достаточно длинной строки."""
        if not publication.citations_raw:
            return None

        references = etree.Element("references")
        order = 1
        for line in _LINE_BREAK.split(publication.citations_raw):
            citation = line.strip()
            if len(citation) < MIN_REFERENCE_LENGTH:
                continue
            reference = etree.SubElement(references, "reference")
            self._text(reference, "unparsedContent", citation)
            self._text(reference, "order", str(order))
            doi = extract_doi_from_text(citation)
            if doi:
                self._text(reference, "doi", doi)
            order += 1

        return references if len(references) else None

    @staticmethod
    def _text(parent: etree._Element, tag: str, text: str) -> etree._Element:
        """Добавить дочерний элемент с текстом."""
        element = etree.SubElement(parent, tag)
        element.text = clean_text(text)
        return element


def build(
    journal: Journal,
    issues: Sequence[Issue],
    repository: MetadataRepository,
    url_builder: UrlBuilder,
    options: Optional[BuildOptions] = None,
) -> etree._ElementTree:
    """Построить документ ICI (новый построитель на каждый вызов)."""
    return IciXmlBuilder(journal, issues, repository, url_builder, options).build_document()
