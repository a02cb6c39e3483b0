"""Тесты для построителя XML документа ICI."""

from datetime import date

import pytest
from lxml import etree
from ici_export.models.metadata import Author, Galley, Issue, Journal, Publication, Submission
from ici_export.modules.repository import InMemoryRepository
from ici_export.modules.xml_builder import BuildOptions, IciXmlBuilder, build, parse_pages, strip_html
from ici_export.modules.xml_validator import validate


def _single_article_repository(journal, issue, publication):
    submission = Submission(
        id=publication.submission_id, journal_id=journal.id,
        current_publication_id=publication.id, publications=[publication],
    )
    return InMemoryRepository(journals=[journal], issues=[issue], submissions=[submission])


def _publication(**kwargs):
    data = dict(
        id=1, submission_id=100, issue_id=10, locale="en_US",
        authors=[Author(id=1, given_name="Jane", family_name="Doe")],
    )
    data.update(kwargs)
    return Publication(**data)


class TestDocumentStructure:
    """Тесты структуры документа."""

    def test_round_trip_scenario(self, repository, journal, issue, url_builder):
        """Тест основного сценария: один выпуск, одна статья, один автор."""
        tree = build(journal, [issue], repository, url_builder)
        root = tree.getroot()

        assert root.tag == "ici-import"
        journal_elem = root.find("journal")
        assert journal_elem.get("issn") == "1234-5678"
        assert len(journal_elem) == 0

        issue_elem = root.find("issue")
        assert issue_elem.get("volume") == "3"
        assert issue_elem.get("number") == "2"
        assert issue_elem.get("year") == "2024"
        assert issue_elem.get("publicationDate") == "2024-03-15"
        assert issue_elem.get("numberOfArticles") == "1"

        article = issue_elem.find("article")
        assert article.findtext("type") == "ORIGINAL_ARTICLE"
        language_versions = article.findall("languageVersion")
        assert [lv.get("language") for lv in language_versions] == ["en"]
        assert language_versions[0].findtext("title") == "Testing metadata export"

        author = article.find("authors/author")
        assert author.findtext("role") == "LEAD_AUTHOR"
        assert author.findtext("ORCID") == "0000-0002-1825-0097"

    def test_journal_without_issn(self, repository, issue, url_builder):
        """Тест: без ISSN у <journal> нет атрибутов."""
        tree = build(Journal(id=1), [issue], repository, url_builder)
        assert tree.getroot().find("journal").attrib == {}

    def test_foreign_issue_excluded(self, repository, journal, issue, foreign_issue, url_builder):
        """Тест: выпуск другого журнала не попадает в документ."""
        tree = build(journal, [foreign_issue, issue], repository, url_builder)
        issues = tree.getroot().findall("issue")
        assert len(issues) == 1
        assert b"Foreign article" not in etree.tostring(tree)

    def test_issue_without_date(self, journal, url_builder):
        """Тест: пустые атрибуты выпуска и отсутствие даты."""
        issue = Issue(id=10, journal_id=1)
        tree = build(journal, [issue], InMemoryRepository(journals=[journal], issues=[issue]), url_builder)
        issue_elem = tree.getroot().find("issue")
        assert issue_elem.get("volume") == ""
        assert issue_elem.get("publicationDate") is None
        assert issue_elem.get("numberOfArticles") == "0"

    def test_fresh_tree_per_build(self, repository, journal, issue, url_builder):
        """Тест: повторное построение даёт новое, идентичное дерево."""
        builder = IciXmlBuilder(journal, [issue], repository, url_builder)
        first = builder.build_document()
        second = builder.build_document()
        assert first.getroot() is not second.getroot()
        assert etree.tostring(first) == etree.tostring(second)

    def test_output_valid_against_schema(self, repository, journal, issue, url_builder, schema_path):
        """Тест: документ соответствует XSD схеме ICI."""
        tree = build(journal, [issue], repository, url_builder)
        result = validate(tree, schema_path)
        assert result.ok, [str(e) for e in result.errors]


class TestArticles:
    """Тесты статей и языковых версий."""

    def test_article_without_authors_dropped(self, repository, journal, issue, url_builder):
        """Тест: статья без полных авторов не выводится."""
        tree = build(journal, [issue], repository, url_builder)
        titles = [t.text for t in tree.getroot().iter("title")]
        assert "Article without named authors" not in titles
        for authors in tree.getroot().iter("authors"):
            assert len(authors.findall("author")) >= 1

    def test_language_version_fields_in_order(self, repository, journal, issue, url_builder):
        """Тест порядка элементов языковой версии."""
        tree = build(journal, [issue], repository, url_builder)
        lv = tree.getroot().find("issue/article/languageVersion")
        assert [child.tag for child in lv] == [
            "title", "pdfFileUrl", "articleUrl", "publicationDate", "pageFrom", "pageTo", "doi", "license",
        ]
        assert lv.findtext("pdfFileUrl") == "https://journal.example.org/index.php/jt/article/download/100/7"
        assert lv.findtext("articleUrl") == "https://journal.example.org/index.php/jt/article/view/100"
        assert lv.findtext("publicationDate") == "2024-03-15"
        assert (lv.findtext("pageFrom"), lv.findtext("pageTo")) == ("12", "20")
        assert lv.findtext("doi") == "10.1234/jt.2024.001"
        license_elem = lv.find("license")
        assert license_elem.text == "https://creativecommons.org/licenses/by/4.0/"
        assert license_elem.get("type") == "CC BY"

    def test_locales_union(self, journal, issue, url_builder):
        """Тест: языковые версии по объединению локалей, без подстановки между локалями."""
        publication = _publication(
            title={"en_US": "English title"},
            abstract={"fr_FR": "<p>Résumé <i>français</i></p>"},
            keywords={"de_DE": [" Schlüssel ", "", "Wort"]},
            license_url="https://creativecommons.org/licenses/by-nc-nd/4.0/",
            date_published=date(2024, 2, 1),
        )
        repository = _single_article_repository(journal, issue, publication)
        article = build(journal, [issue], repository, url_builder).getroot().find("issue/article")
        by_lang = {lv.get("language"): lv for lv in article.findall("languageVersion")}

        assert list(by_lang) == ["en", "fr", "de"]
        assert by_lang["en"].findtext("title") == "English title"
        assert by_lang["en"].find("abstract") is None
        assert by_lang["fr"].find("title") is None
        assert by_lang["fr"].findtext("abstract") == "Résumé français"
        assert [k.text for k in by_lang["de"].findall("keywords/keyword")] == ["Schlüssel", "Wort"]
        assert by_lang["de"].findtext("publicationDate") == "2024-02-01"
        assert by_lang["de"].find("license").get("type") == "CC BY-NC-ND"

    def test_publication_locale_fallback(self, journal, issue, url_builder):
        """Тест: без локализованных полей используется локаль публикации."""
        publication = _publication(locale="pt_BR")
        repository = _single_article_repository(journal, issue, publication)
        lv = build(journal, [issue], repository, url_builder).getroot().find("issue/article/languageVersion")
        assert lv.get("language") == "pt"
        assert lv.find("title") is None
        assert lv.findtext("articleUrl").endswith("/article/view/100")

    def test_submission_doi_fallback(self, journal, issue, url_builder):
        """Тест: DOI статьи используется, если у публикации его нет."""
        publication = _publication(title={"en_US": "T"}, doi="")
        submission = Submission(id=100, journal_id=1, current_publication_id=1,
                                publications=[publication], doi="doi:10.5555/sub.1")
        repository = InMemoryRepository(journals=[journal], issues=[issue], submissions=[submission])
        lv = build(journal, [issue], repository, url_builder).getroot().find("issue/article/languageVersion")
        assert lv.findtext("doi") == "10.5555/sub.1"

    def test_non_conformant_doi_omitted(self, journal, issue, url_builder):
        """Тест: некорректный DOI не выводится."""
        publication = _publication(title={"en_US": "T"}, doi="n/a", license_url="https://example.org/terms")
        repository = _single_article_repository(journal, issue, publication)
        lv = build(journal, [issue], repository, url_builder).getroot().find("issue/article/languageVersion")
        assert lv.find("doi") is None
        assert lv.find("license").get("type") == "OTHER"

    def test_bad_record_does_not_abort_siblings(self, journal, issue, url_builder):
        """Тест: ошибка данных в одной статье не прерывает остальные."""
        broken = _publication(id=2, submission_id=101, title={"en_US": "Broken"})
        broken.keywords = None
        good = _publication(id=3, submission_id=102, title={"en_US": "Good"})
        repository = InMemoryRepository(
            journals=[journal], issues=[issue],
            submissions=[
                Submission(id=101, journal_id=1, current_publication_id=2, publications=[broken]),
                Submission(id=102, journal_id=1, current_publication_id=3, publications=[good]),
            ],
        )
        issue_elem = build(journal, [issue], repository, url_builder).getroot().find("issue")
        assert issue_elem.get("numberOfArticles") == "1"
        assert issue_elem.findtext("article/languageVersion/title") == "Good"


class TestAuthors:
    """Тесты блока авторов."""

    def test_order_contiguous_after_drop(self, journal, issue, url_builder):
        """Тест: порядок авторов 1..k без пропусков."""
        publication = _publication(authors=[
            Author(id=1, given_name="A", family_name="One"),
            Author(id=2, given_name="Nameless"),
            Author(id=3, given_name="C", family_name="Three"),
        ])
        repository = _single_article_repository(journal, issue, publication)
        authors = build(journal, [issue], repository, url_builder).getroot().findall("issue/article/authors/author")
        assert [a.findtext("order") for a in authors] == ["1", "2"]
        assert [a.findtext("surname") for a in authors] == ["One", "Three"]

    def test_author_children_order(self, journal, issue, url_builder):
        """Тест порядка элементов автора."""
        publication = _publication(
            primary_contact_id=1,
            authors=[Author(
                id=1, given_name="John", family_name="Smith", preferred_public_name="John Ronald Smith",
                email="john@example.org", affiliation="Institute", country="us",
                orcid="0000-0001-0000-0001", orcid_verified=True,
            )],
        )
        repository = _single_article_repository(journal, issue, publication)
        author = build(journal, [issue], repository, url_builder).getroot().find("issue/article/authors/author")
        assert [child.tag for child in author] == [
            "name", "name2", "surname", "email", "order", "instituteAffiliation", "country", "role", "ORCID",
        ]
        assert author.findtext("name2") == "Ronald"
        assert author.findtext("country") == "US"

    def test_unverified_orcid_omitted(self, journal, issue, url_builder):
        """Тест: неподтверждённый ORCID не выводится."""
        publication = _publication(authors=[Author(id=1, given_name="A", family_name="B", orcid="0000-0001-0000-0001")])
        repository = _single_article_repository(journal, issue, publication)
        author = build(journal, [issue], repository, url_builder).getroot().find("issue/article/authors/author")
        assert author.find("ORCID") is None
        assert author.findtext("role") == "AUTHOR"

    @pytest.mark.parametrize("force, expected", [(False, None), (True, "QUEEN ARWA UNIVERSITY")])
    def test_affiliation_fallback_option(self, journal, issue, url_builder, force, expected):
        """Тест параметра подстановки аффилиации."""
        publication = _publication()
        repository = _single_article_repository(journal, issue, publication)
        options = BuildOptions(force_affiliation_fallback=force, affiliation_fallback_text="QUEEN ARWA UNIVERSITY")
        tree = build(journal, [issue], repository, url_builder, options)
        assert tree.getroot().findtext("issue/article/authors/author/instituteAffiliation") == expected


class TestReferences:
    """Тесты блока ссылок."""

    def test_references(self, repository, journal, issue, url_builder):
        """Тест: короткие строки отбрасываются, порядок непрерывный."""
        tree = build(journal, [issue], repository, url_builder)
        references = tree.getroot().findall("issue/article/references/reference")
        assert [r.findtext("order") for r in references] == ["1", "2"]
        assert [child.tag for child in references[0]] == ["unparsedContent", "order", "doi"]
        assert references[0].findtext("doi") == "10.1234/jt.2021.456"
        assert references[1].find("doi") is None
        for reference in references:
            assert len(reference.findtext("unparsedContent")) >= 25

    def test_doi_in_free_text(self, journal, issue, url_builder):
        """Тест извлечения DOI из текста ссылки."""
        publication = _publication(citations_raw="See: 10.1000/xyz123 for details and more context padding\r\n")
        repository = _single_article_repository(journal, issue, publication)
        reference = build(journal, [issue], repository, url_builder).getroot().find("issue/article/references/reference")
        assert reference.findtext("doi") == "10.1000/xyz123"

    def test_no_qualifying_lines(self, journal, issue, url_builder):
        """Тест: блок ссылок не выводится, если подходящих строк нет."""
        publication = _publication(citations_raw="short\n\n   \nalso short")
        repository = _single_article_repository(journal, issue, publication)
        article = build(journal, [issue], repository, url_builder).getroot().find("issue/article")
        assert article.find("references") is None
        assert article[-1].tag == "authors"


class TestHelpers:
    """Тесты вспомогательных функций."""

    @pytest.mark.parametrize("pages, expected", [
        ("12-20", ("12", "20")),
        ("pp. 12 – 20", ("", "")),
        ("12 - 20", ("12", "20")),
        ("7", ("7", "")),
        ("e1234", ("e1234", "")),
        ("E55", ("E55", "")),
        ("", ("", "")),
        ("n/a", ("", "")),
    ])
    def test_parse_pages(self, pages, expected):
        """Тест разбора диапазона страниц."""
        assert parse_pages(pages) == expected

    def test_strip_html(self):
        """Тест удаления HTML разметки."""
        assert strip_html("<p>Hello <b>world</b></p>") == "Hello world"
        assert strip_html("Plain text") == "Plain text"
        assert strip_html("  ") == ""

    def test_control_characters_removed(self, journal, issue, url_builder):
        """Тест: управляющие символы не ломают документ."""
        publication = _publication(title={"en_US": "Bad\x0bTitle"})
        repository = _single_article_repository(journal, issue, publication)
        tree = build(journal, [issue], repository, url_builder)
        assert tree.getroot().findtext("issue/article/languageVersion/title") == "BadTitle"
