"""Company name normalization for Peruvian legal entities.

"ALICORP S.A.A."                    -> "ALICORP"
"BANCO DE CREDITO DEL PERU S.A.C."  -> "BANCO DE CREDITO DEL PERU"  (variant: "BCP")
"""

from __future__ import annotations

import re
import unicodedata

# Longest forms first so "S.A.C." is not consumed as "S.A." + "C."
_LEGAL_SUFFIXES: list[str] = [
    r"SOCIEDAD COMERCIAL DE RESPONSABILIDAD LIMITADA",
    r"EMPRESA INDIVIDUAL DE RESPONSABILIDAD LIMITADA",
    r"SOCIEDAD ANONIMA CERRADA",
    r"SOCIEDAD ANONIMA ABIERTA",
    r"SOCIEDAD ANONIMA",
    r"E\.?I\.?R\.?L\.?",
    r"S\.?C\.?R\.?L\.?",
    r"S\.?A\.?C\.?",
    r"S\.?A\.?A\.?",
    r"S\.?R\.?L\.?",
    r"S\.?C\.?",
    r"S\.?A\.?",
]

_SUFFIX_PATTERNS = [
    re.compile(r"(?<![\w])" + suffix + r"(?![\w])", re.IGNORECASE)
    for suffix in _LEGAL_SUFFIXES
]

_GENERIC_PREFIXES = re.compile(
    r"^(EMPRESA|COMPAÑIA|COMPANIA|CORPORACION|GRUPO)\b\s*", re.IGNORECASE
)

_NON_NAME_CHARS = re.compile(r"[^\w\s&-]", re.UNICODE)
_WHITESPACE = re.compile(r"\s+")

_STOPWORDS = frozenset(
    {"de", "del", "la", "las", "los", "el", "y", "e", "en", "para", "por", "&", "-"}
)

_COUNTRY_TAIL = re.compile(r"\s+(DEL\s+)?PERU$")


def fold_accents(text: str) -> str:
    """Strip combining marks: "CRÉDITO" -> "CREDITO", "COMPAÑIA" -> "COMPANIA"."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def clean_company_name(name: str) -> str:
    """Upper-case *name* and strip legal suffixes, generic prefixes and punctuation."""
    clean = name.upper()

    for pattern in _SUFFIX_PATTERNS:
        clean = pattern.sub(" ", clean)

    clean = _WHITESPACE.sub(" ", clean).strip()
    clean = _GENERIC_PREFIXES.sub("", clean)
    clean = _NON_NAME_CHARS.sub(" ", clean).replace("_", " ")

    return _WHITESPACE.sub(" ", clean).strip()


def get_company_words(name: str) -> list[str]:
    """Lower-cased, accent-folded words of the clean name longer than 2 chars."""
    folded = fold_accents(clean_company_name(name)).lower()
    return [w for w in folded.split() if len(w) > 2]


def generate_search_variants(name: str) -> list[str]:
    """Return alternative forms of *name* worth searching for.

    The clean name always comes first, followed by the acronym of its
    significant words (commercial brands are often the initials) and the
    name without a trailing "PERU"/"DEL PERU".
    """
    clean = clean_company_name(name)
    if not clean:
        return []

    variants: list[str] = [clean]

    words = fold_accents(clean).split()
    initials = [w[0] for w in words if w.lower() not in _STOPWORDS and w[0].isalnum()]
    if 2 <= len(initials) <= 6:
        variants.append("".join(initials).upper())

    without_country = _COUNTRY_TAIL.sub("", fold_accents(clean)).strip()
    if without_country and without_country != fold_accents(clean):
        variants.append(without_country)

    seen: set[str] = set()
    unique: list[str] = []
    for variant in variants:
        if variant not in seen:
            seen.add(variant)
            unique.append(variant)
    return unique
