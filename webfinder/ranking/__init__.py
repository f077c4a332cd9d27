"""Company name normalization and candidate ranking."""

from webfinder.ranking.names import (
    clean_company_name,
    fold_accents,
    generate_search_variants,
    get_company_words,
)
from webfinder.ranking.scorer import (
    BLACKLIST_DOMAINS,
    PREFERRED_TLDS,
    is_blacklisted,
    rank_results,
    root_domain,
    score_result,
)

__all__ = [
    "BLACKLIST_DOMAINS",
    "PREFERRED_TLDS",
    "clean_company_name",
    "fold_accents",
    "generate_search_variants",
    "get_company_words",
    "is_blacklisted",
    "rank_results",
    "root_domain",
    "score_result",
]
