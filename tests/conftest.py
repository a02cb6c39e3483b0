"""Общие фикстуры тестов."""

import sys
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from ici_export.models.metadata import Author, Galley, Issue, Journal, Publication, Submission
from ici_export.modules.repository import InMemoryRepository
from ici_export.modules.urls import BaseUrlBuilder


ICI_XSD = """<?xml version="1.0" encoding="UTF-8"?>
<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema" elementFormDefault="qualified">
  <xs:simpleType name="doiType">
    <xs:restriction base="xs:string">
      <xs:pattern value="10\\.[0-9]{4,9}/.{1,200}"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="licenceType">
    <xs:restriction base="xs:string">
      <xs:enumeration value="CC BY"/>
      <xs:enumeration value="CC BY-SA"/>
      <xs:enumeration value="CC BY-ND"/>
      <xs:enumeration value="CC BY-NC"/>
      <xs:enumeration value="CC BY-NC-SA"/>
      <xs:enumeration value="CC BY-NC-ND"/>
      <xs:enumeration value="OTHER"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="referenceLength">
    <xs:restriction base="xs:string">
      <xs:minLength value="25"/>
    </xs:restriction>
  </xs:simpleType>
  <xs:simpleType name="roleType">
    <xs:restriction base="xs:string">
      <xs:enumeration value="LEAD_AUTHOR"/>
      <xs:enumeration value="AUTHOR"/>
    </xs:restriction>
  </xs:simpleType>

  <xs:element name="ici-import">
    <xs:complexType>
      <xs:sequence>
        <xs:element name="journal">
          <xs:complexType>
            <xs:attribute name="issn" type="xs:string"/>
          </xs:complexType>
        </xs:element>
        <xs:element name="issue" type="issueType" minOccurs="0" maxOccurs="unbounded"/>
      </xs:sequence>
    </xs:complexType>
  </xs:element>

  <xs:complexType name="issueType">
    <xs:sequence>
      <xs:element name="article" type="articleType" minOccurs="0" maxOccurs="unbounded"/>
    </xs:sequence>
    <xs:attribute name="number" type="xs:string" use="required"/>
    <xs:attribute name="volume" type="xs:string" use="required"/>
    <xs:attribute name="year" type="xs:string" use="required"/>
    <xs:attribute name="publicationDate" type="xs:date"/>
    <xs:attribute name="numberOfArticles" type="xs:nonNegativeInteger" use="required"/>
  </xs:complexType>

  <xs:complexType name="articleType">
    <xs:sequence>
      <xs:element name="type" type="xs:string"/>
      <xs:element name="languageVersion" type="languageVersionType" minOccurs="0" maxOccurs="unbounded"/>
      <xs:element name="authors">
        <xs:complexType>
          <xs:sequence>
            <xs:element name="author" type="authorType" maxOccurs="unbounded"/>
          </xs:sequence>
        </xs:complexType>
      </xs:element>
      <xs:element name="references" minOccurs="0">
        <xs:complexType>
          <xs:sequence>
            <xs:element name="reference" type="referenceType" maxOccurs="unbounded"/>
          </xs:sequence>
        </xs:complexType>
      </xs:element>
    </xs:sequence>
  </xs:complexType>

  <xs:complexType name="languageVersionType">
    <xs:sequence>
      <xs:element name="title" type="xs:string" minOccurs="0"/>
      <xs:element name="abstract" type="xs:string" minOccurs="0"/>
      <xs:element name="keywords" minOccurs="0">
        <xs:complexType>
          <xs:sequence>
            <xs:element name="keyword" type="xs:string" maxOccurs="unbounded"/>
          </xs:sequence>
        </xs:complexType>
      </xs:element>
      <xs:element name="pdfFileUrl" type="xs:string" minOccurs="0"/>
      <xs:element name="articleUrl" type="xs:string"/>
      <xs:element name="publicationDate" type="xs:date" minOccurs="0"/>
      <xs:element name="pageFrom" type="xs:string" minOccurs="0"/>
      <xs:element name="pageTo" type="xs:string" minOccurs="0"/>
      <xs:element name="doi" type="doiType" minOccurs="0"/>
      <xs:element name="license" minOccurs="0">
        <xs:complexType>
          <xs:simpleContent>
            <xs:extension base="xs:string">
              <xs:attribute name="type" type="licenceType"/>
            </xs:extension>
          </xs:simpleContent>
        </xs:complexType>
      </xs:element>
    </xs:sequence>
    <xs:attribute name="language" type="xs:string" use="required"/>
  </xs:complexType>

  <xs:complexType name="authorType">
    <xs:sequence>
      <xs:element name="name" type="xs:string"/>
      <xs:element name="name2" type="xs:string" minOccurs="0"/>
      <xs:element name="surname" type="xs:string"/>
      <xs:element name="email" type="xs:string" minOccurs="0"/>
      <xs:element name="order" type="xs:positiveInteger"/>
      <xs:element name="instituteAffiliation" type="xs:string" minOccurs="0"/>
      <xs:element name="country" type="xs:string" minOccurs="0"/>
      <xs:element name="role" type="roleType" minOccurs="0"/>
      <xs:element name="ORCID" type="xs:string" minOccurs="0"/>
    </xs:sequence>
  </xs:complexType>

  <xs:complexType name="referenceType">
    <xs:sequence>
      <xs:element name="unparsedContent" type="referenceLength"/>
      <xs:element name="order" type="xs:positiveInteger"/>
      <xs:element name="doi" type="doiType" minOccurs="0"/>
    </xs:sequence>
  </xs:complexType>
</xs:schema>
"""


@pytest.fixture()
def schema_path(tmp_path: Path) -> Path:
    """XSD схема ICI во временной директории."""
    path = tmp_path / "journal_import_ici.xsd"
    path.write_text(ICI_XSD, encoding="utf-8")
    return path


@pytest.fixture()
def url_builder() -> BaseUrlBuilder:
    return BaseUrlBuilder("https://journal.example.org/index.php/jt")


@pytest.fixture()
def journal() -> Journal:
    return Journal(
        id=1,
        online_issn="1234-5678",
        primary_locale="en_US",
        license_url="https://creativecommons.org/licenses/by/4.0/",
    )


@pytest.fixture()
def issue() -> Issue:
    return Issue(id=10, journal_id=1, volume="3", number="2", year="2024", date_published=date(2024, 3, 15))


@pytest.fixture()
def foreign_issue() -> Issue:
    return Issue(id=20, journal_id=2, volume="1", number="1", year="2023", date_published=date(2023, 1, 1))


@pytest.fixture()
def jane_publication() -> Publication:
    """Публикация с одним автором Jane Doe (контактный автор)."""
    return Publication(
        id=1000,
        submission_id=100,
        issue_id=10,
        locale="en_US",
        title={"en_US": "Testing metadata export"},
        authors=[
            Author(
                id=5,
                given_name={"en_US": "Jane"},
                family_name={"en_US": "Doe"},
                email="jane@example.org",
                orcid="0000-0002-1825-0097",
                orcid_verified=True,
                country="gb",
                affiliation={"en_US": "University of Testing"},
            )
        ],
        primary_contact_id=5,
        doi="https://doi.org/10.1234/jt.2024.001",
        pages="12-20",
        citations_raw=(
            "Doe J. Sample article title. Journal of Testing. 2021. doi:10.1234/jt.2021.456.\n"
            "too short\n"
            "Smith A. Another study on testing metadata export. 2020."
        ),
        galleys=[Galley(id=7, label="PDF", file_type="application/pdf")],
    )


@pytest.fixture()
def repository(journal, issue, foreign_issue, jane_publication) -> InMemoryRepository:
    """Журнал 1 с выпуском 10 и чужой журнал 2 с выпуском 20."""
    anonymous = Publication(
        id=1010,
        submission_id=101,
        issue_id=10,
        locale="en_US",
        title={"en_US": "Article without named authors"},
        authors=[Author(id=6, given_name={"en_US": "Anon"})],
    )
    foreign = Publication(
        id=2000,
        submission_id=200,
        issue_id=20,
        locale="en_US",
        title={"en_US": "Foreign article"},
        authors=[Author(id=8, given_name="John", family_name="Roe")],
    )
    return InMemoryRepository(
        journals=[journal, Journal(id=2, online_issn="8765-4321")],
        issues=[issue, foreign_issue],
        submissions=[
            Submission(id=100, journal_id=1, current_publication_id=1000, publications=[jane_publication]),
            Submission(id=101, journal_id=1, current_publication_id=1010, publications=[anonymous]),
            Submission(id=200, journal_id=2, current_publication_id=2000, publications=[foreign]),
        ],
    )


@pytest.fixture()
def metadata_dump() -> dict:
    """JSON-выгрузка метаданных в формате хост-платформы (camelCase)."""
    return {
        "journals": [
            {"id": 1, "onlineIssn": "1234-5678", "primaryLocale": "en_US",
             "licenseUrl": "https://creativecommons.org/licenses/by-nc-nd/4.0/"},
        ],
        "issues": [
            {"id": 10, "journalId": 1, "volume": "3", "number": "2", "year": 2024,
             "datePublished": "2024-03-15 00:00:00", "seq": 1},
            {"id": 11, "journalId": 1, "volume": "3", "number": "1", "year": 2024,
             "datePublished": "2024-01-10", "seq": 0},
            {"id": 20, "journalId": 2, "volume": "1", "number": "1", "year": 2023},
        ],
        "submissions": [
            {
                "id": 100,
                "contextId": 1,
                "currentPublicationId": 1000,
                "publications": [
                    {
                        "id": 1000,
                        "issueId": 10,
                        "locale": "en_US",
                        "title": {"en_US": "Testing metadata export"},
                        "abstract": {"en_US": "<p>An <b>abstract</b>.</p>"},
                        "keywords": {"en_US": ["metadata", " export "]},
                        "primaryContactId": 5,
                        "authors": [
                            {"id": 5, "givenName": {"en_US": "Jane"}, "familyName": {"en_US": "Doe"},
                             "orcid": "0000-0002-1825-0097", "orcidVerified": True},
                        ],
                        "galleys": [{"id": 7, "label": "PDF", "fileType": "application/pdf"}],
                    }
                ],
            }
        ],
    }
