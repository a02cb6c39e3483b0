"""Нормализация DOI к виду 10.XXXX/suffix."""

import re
from typing import Optional

_DOI_PREFIX = re.compile(r"^(https?://(dx\.)?doi\.org/|doi:\s*)", re.IGNORECASE)
_DOI_PATTERN = re.compile(r"^10\.\d{4,9}/.{1,200}$")  # 10.XXXX/suffix
_DOI_LENIENT = re.compile(r"^10\..+")
_DOI_IN_TEXT = re.compile(r"\b(10\.\d{4,9}/[^\s\"<>]+)", re.IGNORECASE)

# Хвостовая пунктуация, которая не входит в DOI внутри текста
_TRAILING_PUNCTUATION = ".,;:()[]{}"


def normalize_doi(raw: Optional[str]) -> str:
    """
    Привести DOI к «голому» виду.

    Убирает префиксы ``https://doi.org/``, ``http://dx.doi.org/``, ``doi:``
    и все пробелы. Значение, не начинающееся с ``10.``, считается
    отсутствующим DOI.

    Args:
        raw: Исходное значение

    Returns:
        Нормализованный DOI или пустая строка
    """
    doi = (raw or "").strip()
    if not doi:
        return ""
    doi = _DOI_PREFIX.sub("", doi)
    doi = re.sub(r"\s+", "", doi)
    if _DOI_PATTERN.match(doi):
        return doi
    if _DOI_LENIENT.match(doi):
        return doi
    return ""


def extract_doi_from_text(text: Optional[str]) -> str:
    """
    Найти DOI в свободном тексте ссылки.

    Args:
        text: Текст библиографической ссылки

    Returns:
        Нормализованный DOI или пустая строка
    """
    if not text:
        return ""
    match = _DOI_IN_TEXT.search(text)
    if not match:
        return ""
    return normalize_doi(match.group(1).rstrip(_TRAILING_PUNCTUATION))
