"""Candidate ranking: blacklist filtering, scoring, deduplication and consolidation.

Turns raw search-engine hits into a ranked list of trustworthy candidates
for a company's official website. Pipeline (order matters):

1. Drop blacklisted hosts (search engines, social networks, job boards,
   news outlets, directories). Malformed URLs count as blacklisted.
2. Keep the first hit per exact hostname, preserving provider order.
3. Score each survivor with additive/subtractive signals (``score_result``).
4. Consolidate by root domain under the normalized homepage
   ``https://www.<root>/``, keeping the best score and the longest title.
5. Sort by score descending; ties keep provider-arrival order.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from urllib.parse import urlsplit

from webfinder.models.results import RankedCandidate, RawHit
from webfinder.ranking.names import fold_accents, get_company_words

PREFERRED_TLDS: tuple[str, ...] = (".pe", ".com.pe", ".gob.pe", ".org.pe")

# Hosts that are never a company's own website.
BLACKLIST_DOMAINS: tuple[str, ...] = (
    # search engines
    "google.com", "duckduckgo.com", "bing.com", "yahoo.com", "yandex.com",
    # social networks
    "linkedin.com", "facebook.com", "twitter.com", "instagram.com",
    "youtube.com", "tiktok.com", "pinterest.com",
    # job boards
    "glassdoor.com", "indeed.com", "computrabajo.com", "bumeran.com",
    # government portals
    "sunat.gob.pe", "gob.pe/institucion",
    # news outlets
    "rpp.pe", "elcomercio.pe", "gestion.pe", "larepublica.pe", "peru21.pe",
    "wikipedia.org",
    # directories, marketplaces and listings
    "datosperu.org", "universidadperu.com", "perudatos.com", "dnb.com",
    "mercadolibre.com", "amazon.com", "yelp.com", "tripadvisor.com", "waze.com",
)

# Labels that make "<x>.<label>.<cc>" a second-level registration (x.com.pe).
_SECOND_LEVEL_LABELS = frozenset({"com", "gob", "org", "net", "edu", "co", "ac", "mil", "nom"})

_PORTAL_SUBDOMAINS = frozenset({"login", "app", "secure", "auth", "portal", "zonasegura"})

_DOCUMENT_EXTENSIONS = (".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx")

_LOCALE_ROOT = re.compile(r"^/[a-z]{2}(-[a-z]{2})?/?$", re.IGNORECASE)


@dataclass(frozen=True)
class _ParsedUrl:
    scheme: str
    hostname: str
    path: str
    query: str


def _parse(url: str) -> _ParsedUrl | None:
    """Parse *url* into the parts the scorer needs; ``None`` when malformed."""
    try:
        parts = urlsplit(url.strip())
        hostname = (parts.hostname or "").lower().rstrip(".")
        # Touch the port so a garbage port ("host:abc") fails here.
        parts.port
    except ValueError:
        return None

    if parts.scheme.lower() not in ("http", "https") or not hostname:
        return None
    if " " in hostname or "." not in hostname:
        return None

    return _ParsedUrl(
        scheme=parts.scheme.lower(),
        hostname=hostname,
        path=parts.path or "/",
        query=parts.query,
    )


def root_domain(hostname: str) -> str:
    """Registrable domain of *hostname*.

    Last two labels, or last three when the second-to-last label is a known
    second-level suffix: ``www.viabcp.com`` -> ``viabcp.com``,
    ``zonasegura.bcp.com.pe`` -> ``bcp.com.pe``.
    """
    labels = hostname.lower().strip(".").split(".")
    if len(labels) >= 3 and labels[-2] in _SECOND_LEVEL_LABELS:
        return ".".join(labels[-3:])
    return ".".join(labels[-2:])


def _base_label(hostname: str) -> str:
    """First label of the root domain (``viabcp`` for ``www.viabcp.com``)."""
    return root_domain(hostname).split(".")[0]


def _subdomain_labels(hostname: str) -> list[str]:
    root = root_domain(hostname)
    prefix = hostname[: -len(root)].rstrip(".") if hostname != root else ""
    return [label for label in prefix.split(".") if label]


def is_blacklisted(url: str, blacklist: Iterable[str] = BLACKLIST_DOMAINS) -> bool:
    """True if *url* is malformed or its host matches a blacklisted domain."""
    parsed = _parse(url)
    if parsed is None:
        return True
    host_and_path = parsed.hostname + parsed.path.lower()
    return any(
        entry in parsed.hostname or ("/" in entry and entry in host_and_path)
        for entry in blacklist
    )


def score_result(
    url: str,
    title: str,
    company_name: str,
    variants: Sequence[str] | None = None,
    preferred_tlds: Iterable[str] = PREFERRED_TLDS,
) -> int:
    """Score how likely *url* is the official homepage of *company_name*.

    Signals:
        +15 Peruvian TLD                    +10 per name word in hostname
        +12 acronym/variant in domain base  +5  per name word in title
        +3  "oficial"/"official" in title   +2  https
        +8  site or locale root path        -2/-5 path depth 2 / >=3
        -20 government host (.gob.pe)       -15 document download
        -5  long query string               -3  login/app portal subdomain
        +5  short domain base containing a name word
    """
    parsed = _parse(url)
    if parsed is None:
        return 0

    hostname = parsed.hostname
    words = [w for w in get_company_words(company_name) if len(w) > 3]
    base = _base_label(hostname)
    score = 0

    if any(hostname.endswith(tld) for tld in preferred_tlds):
        score += 15

    for word in words:
        if word in hostname:
            score += 10

    for variant in variants or ():
        token = fold_accents(variant).lower().replace(" ", "")
        if 3 <= len(token) <= 6 and token.isalnum() and token in base:
            score += 12
            break

    if title:
        folded_title = fold_accents(title).lower()
        for word in words:
            if word in folded_title:
                score += 5
        if "oficial" in folded_title or "official" in folded_title:
            score += 3

    if parsed.scheme == "https":
        score += 2

    path = parsed.path
    if path == "/" or _LOCALE_ROOT.match(path):
        score += 8

    depth = len([segment for segment in path.split("/") if segment])
    if depth >= 3:
        score -= 5
    elif depth == 2:
        score -= 2

    if hostname.endswith(".gob.pe"):
        score -= 20

    if path.lower().endswith(_DOCUMENT_EXTENSIONS):
        score -= 15

    if len(parsed.query) > 20:
        score -= 5

    for label in _subdomain_labels(hostname):
        if label in _PORTAL_SUBDOMAINS or label.split("-")[0] in _PORTAL_SUBDOMAINS:
            score -= 3
            break

    if len(base) <= 15 and any(word in base for word in words):
        score += 5

    return score


def rank_results(
    hits: Iterable[RawHit],
    company_name: str,
    variants: Sequence[str] | None = None,
    *,
    blacklist: Iterable[str] = BLACKLIST_DOMAINS,
    preferred_tlds: Iterable[str] = PREFERRED_TLDS,
) -> list[RankedCandidate]:
    """Filter, deduplicate, score and consolidate *hits*; best candidate first."""
    blacklist = tuple(blacklist)
    preferred_tlds = tuple(preferred_tlds)

    seen_hosts: set[str] = set()
    scored: list[tuple[str, RankedCandidate]] = []

    for hit in hits:
        if not hit.url or is_blacklisted(hit.url, blacklist):
            continue
        parsed = _parse(hit.url)
        if parsed is None or parsed.hostname in seen_hosts:
            continue
        seen_hosts.add(parsed.hostname)

        title = (hit.title or "").strip()
        candidate = RankedCandidate(
            url=hit.url,
            title=title,
            score=score_result(hit.url, title, company_name, variants, preferred_tlds),
        )
        scored.append((root_domain(parsed.hostname), candidate))

    consolidated = _consolidate(scored, company_name, variants, preferred_tlds)
    # list.sort is stable, so ties keep arrival order.
    consolidated.sort(key=lambda c: c.score, reverse=True)
    return consolidated


def _consolidate(
    scored: list[tuple[str, RankedCandidate]],
    company_name: str,
    variants: Sequence[str] | None,
    preferred_tlds: tuple[str, ...],
) -> list[RankedCandidate]:
    """Merge candidates sharing a root domain into one homepage candidate."""
    groups: dict[str, list[RankedCandidate]] = {}
    for root, candidate in scored:
        groups.setdefault(root, []).append(candidate)

    merged: list[RankedCandidate] = []
    for root, members in groups.items():
        homepage = f"https://www.{root}/"
        # max() keeps the first of equally long titles.
        title = max((m.title for m in members), key=len)
        best_original = max(m.score for m in members)
        normalized = score_result(homepage, title, company_name, variants, preferred_tlds)
        merged.append(
            RankedCandidate(url=homepage, title=title, score=max(best_original, normalized))
        )
    return merged
