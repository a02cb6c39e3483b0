"""Сопоставление URL лицензии с перечислением licenceType схемы ICI."""

from typing import Optional

OTHER_LICENSE = "OTHER"

# Порядок важен: более длинные сегменты проверяются раньше
_CC_SEGMENTS = (
    ("/by-nc-nd/", "CC BY-NC-ND"),
    ("/by-nc-sa/", "CC BY-NC-SA"),
    ("/by-nc/", "CC BY-NC"),
    ("/by-nd/", "CC BY-ND"),
    ("/by-sa/", "CC BY-SA"),
    ("/by/", "CC BY"),
)


def map_cc_short_name(url: Optional[str]) -> str:
    """
    Тип лицензии Creative Commons по её URL.

    Args:
        url: URL лицензии

    Returns:
        Одно из ``CC BY-NC-ND``, ``CC BY-NC-SA``, ``CC BY-NC``, ``CC BY-ND``,
        ``CC BY-SA``, ``CC BY`` или ``OTHER``
    """
    lowered = (url or "").lower()
    if "creativecommons.org" not in lowered:
        return OTHER_LICENSE
    for segment, short_name in _CC_SEGMENTS:
        if segment in lowered:
            return short_name
    return OTHER_LICENSE
