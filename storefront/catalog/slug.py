"""URL slugs for category and product names."""

import re
import unicodedata

# Word substituted for "&" per locale
AMPERSAND_WORDS = {
    "fr": "et",
    "en": "and",
}

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(name: str, locale: str = "fr") -> str:
    """Derive a URL-safe slug from a human name.

    Diacritics are stripped, the result is lowercased, ``&`` becomes the
    locale's word for "and" and every run of other characters collapses to
    a single hyphen.

    Examples:
        >>> slugify("Décor & Thématique")
        'decor-et-thematique'
        >>> slugify("Tables & Chairs", locale="en")
        'tables-and-chairs'
    """
    decomposed = unicodedata.normalize("NFD", str(name))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    lowered = stripped.lower()
    word = AMPERSAND_WORDS.get(locale, AMPERSAND_WORDS["fr"])
    lowered = lowered.replace("&", word)
    return _NON_ALNUM.sub("-", lowered).strip("-")


def join_path(parent_path: str | None, slug: str) -> str:
    """Join a parent full path and a child slug."""
    return f"{parent_path}/{slug}" if parent_path else slug
