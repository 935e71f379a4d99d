# ABOUTME: Cross-provider best-match search and cached year lookup.
# ABOUTME: Merges provider results, dedupes them, re-scores against the query, applies a floor.

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from shelver.db.cache import LookupCache
from shelver.metadata.candidate import ExternalCandidate
from shelver.metadata.googlebooks import GoogleBooksProvider
from shelver.metadata.http import HttpClient
from shelver.metadata.normalizer import normalize_text
from shelver.metadata.openlibrary import OpenLibraryProvider
from shelver.metadata.provider import MetadataProvider
from shelver.metadata.scoring import EXTERNAL_MIN_SCORE, score_pair

logger = logging.getLogger(__name__)

# A colon, or a dash with whitespace on both sides, starts a subtitle.
# "Spider-Man" keeps its hyphen.
_SUBTITLE_SPLIT_RE = re.compile(r":|\s[-–—]\s")


@dataclass(frozen=True)
class ResolverConfig:
    """Settings for MetadataResolver.

    Attributes:
        min_score: Re-scored floor (0-100) a result must reach to be returned.
        providers: Provider names to query, in order.
        year_cache_ttl: Seconds a resolved year stays cached.
        limit_per_provider: Results requested from each provider by default.
        year_limit_per_provider: Results requested per provider for year lookups.
    """

    min_score: float = EXTERNAL_MIN_SCORE
    providers: tuple[str, ...] = ("openlibrary", "googlebooks")
    year_cache_ttl: int = 86400
    limit_per_provider: int = 5
    year_limit_per_provider: int = 3


def create_providers(
    config: ResolverConfig,
    http_client: HttpClient,
    *,
    google_api_key: str | None = None,
) -> list[MetadataProvider]:
    """Instantiate the providers named in the config, in order."""
    providers: list[MetadataProvider] = []
    for name in config.providers:
        if name == "openlibrary":
            providers.append(OpenLibraryProvider(http_client))
        elif name == "googlebooks":
            providers.append(GoogleBooksProvider(http_client, api_key=google_api_key))
        else:
            logger.warning("Unknown metadata provider %r ignored", name)
    return providers


def simplify_title(title: str) -> str:
    """Cut a title at its first colon or spaced dash to drop the subtitle.

    Returns the stripped full title if the cut would leave nothing.
    """
    head = _SUBTITLE_SPLIT_RE.split(title, maxsplit=1)[0].strip()
    return head or title.strip()


def _dedupe_key(candidate: ExternalCandidate) -> str:
    return f"{normalize_text(candidate.title)}|{normalize_text(candidate.author)}"


class MetadataResolver:
    """Finds the best external match for a (title, author) query.

    Providers are queried in order and their results merged. Duplicates
    (same normalized title|author) keep the highest provider score; every
    survivor is then re-scored against the query and the best is returned
    only if it reaches config.min_score.
    """

    def __init__(
        self,
        providers: Iterable[MetadataProvider],
        config: ResolverConfig | None = None,
        *,
        cache: LookupCache | None = None,
    ) -> None:
        self._providers = list(providers)
        self._config = config or ResolverConfig()
        self._cache = cache

    @property
    def config(self) -> ResolverConfig:
        return self._config

    def search_best_match(
        self, title: str, author: str, limit_per_provider: int | None = None
    ) -> ExternalCandidate | None:
        """Return the best re-scored candidate at or above min_score, else None."""
        limit = limit_per_provider or self._config.limit_per_provider
        if limit <= 0:
            limit = self._config.limit_per_provider

        merged: dict[str, ExternalCandidate] = {}
        for provider in self._providers:
            for candidate in provider.search(title, author, limit):
                key = _dedupe_key(candidate)
                current = merged.get(key)
                if current is None or candidate.score > current.score:
                    merged[key] = candidate

        if not merged:
            logger.debug("No external results for title=%s author=%s", title, author)
            return None

        nt = normalize_text(title)
        na = normalize_text(author)
        best: ExternalCandidate | None = None
        for candidate in merged.values():
            score = score_pair(
                nt, na, normalize_text(candidate.title), normalize_text(candidate.author)
            )
            if best is None or score > best.score:
                best = replace(candidate, score=score)

        if best is not None and best.score >= self._config.min_score:
            return best

        logger.debug(
            "Best external result for title=%s author=%s scored below %.0f",
            title,
            author,
            self._config.min_score,
        )
        return None

    def lookup_year(self, title: str, author: str) -> int | None:
        """Publication year of the best match for a subtitle-stripped query.

        Resolved years are cached per (simplified title, author) for
        config.year_cache_ttl seconds. Blank title or author yields None
        without any lookup.
        """
        title = (title or "").strip()
        author = (author or "").strip()
        if not title or not author:
            return None

        simplified = simplify_title(title)
        cache_key = f"year:{normalize_text(simplified)}|{normalize_text(author)}"
        if self._cache is not None:
            cached = self._cache.get(cache_key)
            if cached is not None:
                return int(cached)

        best = self.search_best_match(
            simplified, author, limit_per_provider=self._config.year_limit_per_provider
        )
        year = best.year if best is not None and best.year else None
        if year is not None and self._cache is not None:
            self._cache.set(cache_key, year, self._config.year_cache_ttl)
        return year

    def lookup_years(self, items: Iterable[Mapping[str, Any]]) -> list[int | None]:
        """Years for each {title, author} item, aligned positionally with the input."""
        return [
            self.lookup_year(str(item.get("title") or ""), str(item.get("author") or ""))
            for item in items
        ]
