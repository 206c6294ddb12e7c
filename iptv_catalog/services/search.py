"""
Catalog search service.
Tokenizes queries, filters and ranks catalog entries, paginates and caches.
"""
import logging
import re
from typing import Optional

from iptv_catalog.errors import SearchError, StoreError
from iptv_catalog.models.channel import Channel, SearchResult
from iptv_catalog.services.catalog_store import (
    ALL_CATEGORIES,
    CatalogStore,
    get_store,
    validate_page,
    validate_tenant,
)
from iptv_catalog.services.search_cache import SearchCache
from iptv_catalog.services.text import normalize_text

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset({
    # Portuguese
    "o", "a", "os", "as", "um", "uma", "uns", "umas",
    "de", "do", "da", "dos", "das", "em", "no", "na", "nos", "nas",
    "por", "pelo", "pela", "pelos", "pelas", "com", "para", "e", "ou", "que", "se",
    # English
    "the", "of", "and", "to", "in", "is", "it",
})

FRAGMENT_PATTERN = re.compile(r"\w+")

# Relevance weights
EXACT_MATCH_SCORE = 1000
PHRASE_MATCH_SCORE = 500
PHRASE_PREFIX_BONUS = 200
WORD_BOUNDARY_SCORE = 50
SUBSTRING_SCORE = 20
TOKEN_PREFIX_BONUS = 30
ALL_BOUNDARY_BONUS = 100
LENGTH_PENALTY_PER_CHAR = 0.5


def tokenize(query: str) -> list[str]:
    """Normalized query words, without stop words or single characters."""
    return [
        word for word in normalize_text(query).split()
        if len(word) > 1 and word not in STOP_WORDS
    ]


def token_fragments(tokens: list[str]) -> list[str]:
    """Alphanumeric pieces of the tokens ("spider-man" -> spider, man)."""
    return [fragment for token in tokens for fragment in FRAGMENT_PATTERN.findall(token)]


def build_loose_pattern(tokens: list[str]) -> Optional[re.Pattern]:
    """Fragments joined by "anything in between", tolerant of punctuation."""
    fragments = token_fragments(tokens)
    if not fragments:
        return None
    return re.compile(".*?".join(re.escape(fragment) for fragment in fragments))


def matches(name: str, tokens: list[str], loose_pattern: Optional[re.Pattern]) -> bool:
    """All tokens as substrings, or the punctuation-tolerant pattern."""
    if all(token in name for token in tokens):
        return True
    return loose_pattern is not None and loose_pattern.search(name) is not None


def score(name: str, phrase: str, tokens: list[str]) -> float:
    """
    Relevance of a normalized name for a normalized query.

    Exact match beats phrase containment, which beats per-token matching;
    longer names than the query are penalized per extra character.
    """
    total = 0.0

    if name == phrase:
        total += EXACT_MATCH_SCORE
    elif phrase in name:
        total += PHRASE_MATCH_SCORE
        if name.startswith(phrase):
            total += PHRASE_PREFIX_BONUS
    else:
        boundary_matches = 0
        for token in tokens:
            if re.search(rf"\b{re.escape(token)}\b", name):
                boundary_matches += 1
                total += WORD_BOUNDARY_SCORE
            elif token in name:
                total += SUBSTRING_SCORE

            if name.startswith(token):
                total += TOKEN_PREFIX_BONUS

        if tokens and boundary_matches == len(tokens):
            total += ALL_BOUNDARY_BONUS

    total -= LENGTH_PENALTY_PER_CHAR * max(0, len(name) - len(phrase))
    return total


class SearchEngine:
    """Relevance-ranked search over a tenant's catalog."""

    def __init__(self, store: CatalogStore, cache: Optional[SearchCache] = None):
        self.store = store
        self.cache = cache if cache is not None else store.search_cache

    async def search(
        self,
        tenant_id: str,
        query: str,
        category: str = ALL_CATEGORIES,
        page: int = 0,
        page_size: int = 20,
    ) -> SearchResult:
        """
        Search channel names.

        Args:
            tenant_id: Catalog owner
            query: Free-text query
            category: Category filter ("all" for none)
            page: Zero-based page number
            page_size: Results per page

        Returns:
            Ranked page of channels; empty when nothing matches

        Raises:
            ValidationError: missing tenant or bad paging parameters
            SearchError: the store could not be read
        """
        tenant_id = validate_tenant(tenant_id)
        validate_page(page, page_size, self.store.max_page_size)
        category = category or ALL_CATEGORIES

        tokens = tokenize(query)
        if not tokens:
            return SearchResult(channels=[], total=0, has_more=False)

        phrase = normalize_text(query)
        cached = self.cache.get(tenant_id, phrase, category, page, page_size)
        if cached is not None:
            logger.debug(f"Search cache hit for {phrase!r}")
            return cached

        generation = self.cache.generation(tenant_id)
        try:
            candidates = await self.store.find_candidates(tenant_id, token_fragments(tokens), category)
        except StoreError as e:
            logger.error(f"Search failed for tenant {tenant_id}: {e}")
            raise SearchError(f"Search failed: {e}") from e

        ranked = self.rank(candidates, phrase, tokens)
        start = page * page_size
        result = SearchResult(
            channels=ranked[start:start + page_size],
            total=len(ranked),
            has_more=(page + 1) * page_size < len(ranked),
        )

        self.cache.set(tenant_id, phrase, category, page, page_size, value=result, generation=generation)
        logger.info(f"Search {phrase!r} in {category!r}: {result.total} matches")
        return result

    @staticmethod
    def rank(candidates: list[Channel], phrase: str, tokens: list[str]) -> list[Channel]:
        """Filter and order candidates by score; ties keep catalog order."""
        loose_pattern = build_loose_pattern(tokens)
        scored = []
        for channel in candidates:
            name = normalize_text(channel.name)
            if matches(name, tokens, loose_pattern):
                scored.append((score(name, phrase, tokens), channel))

        # sorted() is stable, so equal scores keep candidate order
        scored = sorted(scored, key=lambda item: item[0], reverse=True)
        return [channel for _, channel in scored]


# Singleton instance
_search_engine: Optional[SearchEngine] = None


async def get_search_engine() -> SearchEngine:
    """Get or create search engine singleton."""
    global _search_engine
    if _search_engine is None:
        _search_engine = SearchEngine(await get_store())
    return _search_engine


def reset_search_engine():
    global _search_engine
    _search_engine = None
