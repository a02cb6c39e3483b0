"""
Разбор авторов публикации для блока <authors>.

Имя, фамилия и публичное имя выбираются по предпочтительным локалям,
после чего применяются эвристики дополнения имени:

a) нет фамилии, а публичное имя из двух и более слов - последнее слово
   становится фамилией, остальное (если имя ещё пусто) - именем;
b) имя всё ещё пусто - имя = публичное имя;
c) фамилия в конце имени удаляется, чтобы не дублировать её;
d) второе имя - остаток публичного имени без целых слов имени и фамилии.

Автор без имени или фамилии после этих шагов отбрасывается.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional

from ici_export.models.metadata import Author
from ici_export.utils.localization import pick_by_locales, preferred_latin_locales, preferred_locales
from ici_export.utils.logger import get_logger

logger = get_logger(__name__)

AFFILIATION_SEPARATOR = " ; "

ROLE_LEAD_AUTHOR = "LEAD_AUTHOR"
ROLE_AUTHOR = "AUTHOR"


@dataclass
class ResolvedAuthor:
    """Автор, готовый к выводу в XML."""

    name: str
    surname: str
    middle_name: str = ""
    email: str = ""
    affiliation: str = ""
    country: str = ""
    role: str = ROLE_AUTHOR
    orcid: str = ""


def split_public_name(given: str, family: str, public: str) -> tuple:
    """
    Дополнить имя и фамилию из публичного имени (эвристики a-c).

    Args:
        given: Имя
        family: Фамилия
        public: Публичное (отображаемое) имя

    Returns:
        Кортеж (имя, фамилия)
    """
    if family == "" and public != "":
        tokens = public.split()
        if len(tokens) > 1:
            family = tokens.pop()
            if given == "":
                given = " ".join(tokens).strip()

    if given == "" and public != "":
        given = public

    if given != "" and family != "":
        given = re.sub(
            r"\s*" + re.escape(family) + r"\s*$", "", given, flags=re.IGNORECASE | re.UNICODE
        ).strip()

    return given, family


def derive_middle_name(given: str, family: str, public: str) -> str:
    """Второе имя: публичное имя без целых слов имени и фамилии (эвристика d)."""
    if public == "" or given == "":
        return ""
    rest = public
    if family != "":
        rest = re.sub(r"\b" + re.escape(family) + r"\b", "", rest, flags=re.IGNORECASE)
    rest = re.sub(r"\b" + re.escape(given) + r"\b", "", rest, flags=re.IGNORECASE)
    rest = re.sub(r"\s+", " ", rest).strip()
    if rest != "" and rest != given and rest != family:
        return rest
    return ""


def resolve_affiliation(author: Author, locale: str) -> str:
    """
    Аффилиация автора, первая непустая по приоритету.

    1) список локализованных названий (уникальные, через " ; ");
    2) локализованная строка;
    3) локализованные данные поля ``affiliation``;
    4) «сырое» значение: строка или словарь по латинским локалям.

    Args:
        author: Автор
        locale: Локаль публикации

    Returns:
        Строка аффилиации или пустая строка
    """
    if author.affiliation_names is not None:
        names = author.affiliation_names(locale) or []
        if isinstance(names, str):
            names = [names]
        clean: List[str] = []
        for name in names:
            name = str(name or "").strip()
            if name and name not in clean:
                clean.append(name)
        if clean:
            return AFFILIATION_SEPARATOR.join(clean)

    if author.localized_affiliation is not None:
        value = str(author.localized_affiliation(locale) or "").strip()
        if value:
            return value

    if author.localized_data is not None:
        value = str(author.localized_data("affiliation", locale) or "").strip()
        if value:
            return value

    if isinstance(author.affiliation, str):
        return author.affiliation.strip()
    if isinstance(author.affiliation, dict):
        return pick_by_locales(author.affiliation, preferred_latin_locales()).strip()
    return ""


class AuthorResolver:
    """Разбор списка авторов одной публикации."""

    def __init__(
        self,
        publication_locale: str,
        primary_contact_id: Any = None,
        force_affiliation_fallback: bool = False,
        affiliation_fallback_text: str = "No data",
    ):
        """
        Инициализация.

        Args:
            publication_locale: Локаль публикации (или основная локаль журнала)
            primary_contact_id: Идентификатор контактного автора
            force_affiliation_fallback: Подставлять текст для пустой аффилиации
            affiliation_fallback_text: Подставляемый текст
        """
        self.publication_locale = publication_locale or "en_US"
        self.primary_contact_id = primary_contact_id
        self.force_affiliation_fallback = force_affiliation_fallback
        self.affiliation_fallback_text = affiliation_fallback_text
        self.locales = preferred_locales(self.publication_locale)

    def resolve(self, author: Author) -> Optional[ResolvedAuthor]:
        """
        Разобрать одного автора.

        Returns:
            ResolvedAuthor или None, если не удалось получить имя и фамилию
        """
        given = pick_by_locales(author.given_name, self.locales).strip()
        family = pick_by_locales(author.family_name, self.locales).strip()
        public = pick_by_locales(author.preferred_public_name, self.locales).strip()

        given, family = split_public_name(given, family, public)
        middle = derive_middle_name(given, family, public)

        if given == "" or family == "":
            logger.debug(f"Автор {author.id} пропущен: не удалось определить имя и фамилию")
            return None

        affiliation = resolve_affiliation(author, self.publication_locale)
        if affiliation == "" and self.force_affiliation_fallback:
            affiliation = self.affiliation_fallback_text

        is_lead = (
            author.id is not None
            and self.primary_contact_id is not None
            and str(author.id) == str(self.primary_contact_id)
        )
        return ResolvedAuthor(
            name=given,
            surname=family,
            middle_name=middle,
            email=author.email.strip(),
            affiliation=affiliation,
            country=author.country.strip().upper(),
            role=ROLE_LEAD_AUTHOR if is_lead else ROLE_AUTHOR,
            orcid=author.orcid.strip() if author.orcid_verified else "",
        )

    def resolve_all(self, authors: List[Author]) -> List[ResolvedAuthor]:
        """Разобрать всех авторов, сохраняя исходный порядок и пропуская неполных."""
        resolved = []
        for author in authors:
            item = self.resolve(author)
            if item is not None:
                resolved.append(item)
        return resolved
