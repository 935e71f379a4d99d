# ABOUTME: Metadata provider backed by the Open Library search API.
# ABOUTME: Searches openlibrary.org by title/author and returns scored candidates.

import logging

from shelver.metadata.candidate import ExternalCandidate
from shelver.metadata.http import HttpClient, MetadataFetchError
from shelver.metadata.normalizer import normalize_text
from shelver.metadata.openlibrary_parser import parse_search_results
from shelver.metadata.scoring import score_pair

logger = logging.getLogger(__name__)

_SEARCH_URL = "https://openlibrary.org/search.json"


class OpenLibraryProvider:
    """Scores Open Library search.json docs against the query."""

    def __init__(self, http_client: HttpClient) -> None:
        self._http = http_client

    @property
    def name(self) -> str:
        return "openlibrary"

    def search(self, title: str, author: str, limit: int = 5) -> list[ExternalCandidate]:
        """Search Open Library by title and author.

        Returns candidates sorted by score descending, or [] when the
        request fails or nothing is found.
        """
        params = {"title": title, "author": author, "limit": str(limit)}
        try:
            data = self._http.get(_SEARCH_URL, params=params)
        except MetadataFetchError as exc:
            logger.warning(
                "Open Library search failed for title=%s author=%s: %s", title, author, exc
            )
            return []

        nt = normalize_text(title)
        na = normalize_text(author)
        candidates = [
            ExternalCandidate(
                title=doc.title,
                author=doc.author,
                isbn=doc.isbn,
                year=doc.year,
                source=self.name,
                score=score_pair(nt, na, normalize_text(doc.title), normalize_text(doc.author)),
            )
            for doc in parse_search_results(data)
        ]
        candidates.sort(key=lambda c: c.score, reverse=True)
        return candidates
