"""Выбор значений из локализованных полей (словарь локаль -> строка)."""

import re
from typing import Any, Iterable, List, Optional

# Сначала латинские локали (EN*), арабские в конце
_PREFERRED_LATIN_LOCALES = (
    "en_US", "en_GB", "en-GB", "en_CA", "en_AU", "en_IE", "en_NZ", "en",
    "fr_FR", "fr", "de_DE", "de", "es_ES", "es", "tr_TR", "tr",
    "ar_YE", "ar_SA", "ar_EG", "ar_IQ", "ar",
)


def preferred_latin_locales() -> List[str]:
    """Фиксированный порядок предпочтения локалей для имён и аффилиаций."""
    return list(_PREFERRED_LATIN_LOCALES)


def preferred_locales(publication_locale: Optional[str]) -> List[str]:
    """
    Порядок локалей для автора: сначала локаль публикации, затем латинские.

    Args:
        publication_locale: Локаль публикации (может быть пустой)

    Returns:
        Список локалей без повторов
    """
    result: List[str] = []
    for locale in [publication_locale or ""] + preferred_latin_locales():
        if locale and locale not in result:
            result.append(locale)
    return result


def pick_first_string(value: Any) -> str:
    """Первая непустая строка из скаляра или локализованного словаря."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        for item in value.values():
            if isinstance(item, str) and item != "":
                return item
    return ""


def get_from_bag(bag: Any, locale: str) -> str:
    """
    Значение для конкретной локали, без подстановки из других локалей.

    Строка (нелокализованное поле) возвращается как есть.
    """
    if isinstance(bag, str):
        return bag.strip()
    if isinstance(bag, dict):
        value = bag.get(locale)
        if isinstance(value, str):
            return value.strip()
    return ""


def pick_by_locales(value: Any, locales: Iterable[str]) -> str:
    """
    Выбрать значение по списку предпочтительных локалей.

    Порядок: точное совпадение по списку; для ``en`` подходит любой ключ
    ``en_*``/``en-*``; в конце - любое непустое значение.

    Args:
        value: Строка или словарь локаль -> строка
        locales: Локали в порядке предпочтения

    Returns:
        Найденная строка или пустая строка
    """
    if isinstance(value, str):
        return value
    if not isinstance(value, dict):
        return ""

    for locale in locales:
        candidate = value.get(locale)
        if isinstance(candidate, str) and candidate != "":
            return candidate
        if locale == "en":
            for key, item in value.items():
                if not isinstance(item, str) or item == "":
                    continue
                lowered = str(key).lower()
                if lowered.startswith("en_") or lowered.startswith("en-"):
                    return item

    return pick_first_string(value)


def locale_to_lang_code(locale: Optional[str]) -> str:
    """Код языка из локали: ``en_US`` -> ``en``, ``pt-BR`` -> ``pt``."""
    lang = re.split(r"[_-]", locale or "")[0].lower()
    return lang if lang else "en"
