"""
Slug Generation
===============

URL slugs for published news in English, Norwegian and Ukrainian.
Non-ASCII letters are transliterated before slugifying so every language
produces a readable Latin slug, suffixed with the news ID prefix for
uniqueness.
"""

import re
from typing import Dict

NORWEGIAN_MAP: Dict[str, str] = {
    'æ': 'ae', 'ø': 'oe', 'å': 'aa',
    'Æ': 'Ae', 'Ø': 'Oe', 'Å': 'Aa',
    'é': 'e', 'É': 'E',
    'ö': 'o', 'Ö': 'O',
    'ä': 'a', 'Ä': 'A',
    'ü': 'u', 'Ü': 'U',
}

UKRAINIAN_MAP: Dict[str, str] = {
    'а': 'a', 'б': 'b', 'в': 'v', 'г': 'h', 'ґ': 'g', 'д': 'd', 'е': 'e',
    'є': 'ye', 'ж': 'zh', 'з': 'z', 'и': 'y', 'і': 'i', 'ї': 'yi', 'й': 'y',
    'к': 'k', 'л': 'l', 'м': 'm', 'н': 'n', 'о': 'o', 'п': 'p', 'р': 'r',
    'с': 's', 'т': 't', 'у': 'u', 'ф': 'f', 'х': 'kh', 'ц': 'ts', 'ч': 'ch',
    'ш': 'sh', 'щ': 'shch', 'ь': '', 'ю': 'yu', 'я': 'ya', "'": '',
    'А': 'A', 'Б': 'B', 'В': 'V', 'Г': 'H', 'Ґ': 'G', 'Д': 'D', 'Е': 'E',
    'Є': 'Ye', 'Ж': 'Zh', 'З': 'Z', 'И': 'Y', 'І': 'I', 'Ї': 'Yi', 'Й': 'Y',
    'К': 'K', 'Л': 'L', 'М': 'M', 'Н': 'N', 'О': 'O', 'П': 'P', 'Р': 'R',
    'С': 'S', 'Т': 'T', 'У': 'U', 'Ф': 'F', 'Х': 'Kh', 'Ц': 'Ts', 'Ч': 'Ch',
    'Ш': 'Sh', 'Щ': 'Shch', 'Ь': '', 'Ю': 'Yu', 'Я': 'Ya',
}

MAX_SLUG_LENGTH = 80


def transliterate(text: str, language: str) -> str:
    """Replace language-specific letters with Latin equivalents.

    Args:
        text: Source text
        language: 'en', 'no' or 'ua'

    Returns:
        Transliterated text; English is returned unchanged
    """
    if language == 'ua':
        mapping = UKRAINIAN_MAP
    elif language == 'no':
        mapping = NORWEGIAN_MAP
    else:
        return text
    return ''.join(mapping.get(char, char) for char in text)


def slugify(text: str, language: str = 'en') -> str:
    slug = transliterate(text, language).lower()
    slug = re.sub(r'[^\w\s-]', '', slug, flags=re.ASCII)
    slug = re.sub(r'\s+', '-', slug)
    slug = re.sub(r'-+', '-', slug)
    slug = slug.strip('-')
    return slug[:MAX_SLUG_LENGTH]


def generate_slug(text: str, language: str, news_id: str) -> str:
    """Build a unique slug like ``some-title-1a2b3c4d``.

    Args:
        text: Title to slugify
        language: Language of the title
        news_id: News record ID; its first 8 characters are appended

    Returns:
        Slug string
    """
    base = slugify(text, language)
    suffix = news_id[:8]
    return f"{base}-{suffix}" if base else suffix
