# ABOUTME: Google Books metadata provider implementation.
# ABOUTME: Queries the volumes endpoint with intitle:/inauthor: and maps volumeInfo to candidates.

import logging
from typing import Any

from shelver.metadata.candidate import ExternalCandidate, extract_year
from shelver.metadata.http import HttpClient, MetadataFetchError
from shelver.metadata.normalizer import normalize_text
from shelver.metadata.scoring import score_pair

logger = logging.getLogger(__name__)

_VOLUMES_URL = "https://www.googleapis.com/books/v1/volumes"


def _pick_isbn(identifiers: Any) -> str | None:
    """Prefer the ISBN_13 identifier; otherwise the first identifier present."""
    if not isinstance(identifiers, list):
        return None
    entries = [i for i in identifiers if isinstance(i, dict) and i.get("identifier")]
    for entry in entries:
        if entry.get("type") == "ISBN_13":
            return str(entry["identifier"])
    return str(entries[0]["identifier"]) if entries else None


def parse_volume(item: dict[str, Any]) -> tuple[str, str, str | None, int | None] | None:
    """Extract (title, author, isbn, year) from one volume. None if it has no title."""
    info = item.get("volumeInfo")
    if not isinstance(info, dict):
        return None
    title = str(info.get("title") or "")
    if not title:
        return None
    authors = info.get("authors")
    author = str(authors[0]) if isinstance(authors, list) and authors else ""
    return (
        title,
        author,
        _pick_isbn(info.get("industryIdentifiers")),
        extract_year(info.get("publishedDate")),
    )


class GoogleBooksProvider:
    """Metadata provider backed by the Google Books volumes API.

    An API key is optional; anonymous requests share a lower quota.
    """

    def __init__(self, http_client: HttpClient, api_key: str | None = None) -> None:
        self._http = http_client
        self._api_key = api_key

    @property
    def name(self) -> str:
        return "googlebooks"

    def search(self, title: str, author: str, limit: int = 5) -> list[ExternalCandidate]:
        """Search Google Books by title and author.

        Returns candidates sorted by score descending, or [] when the
        request fails or nothing is found.
        """
        query_parts = []
        if title:
            query_parts.append(f"intitle:{title}")
        if author:
            query_parts.append(f"inauthor:{author}")
        params = {"q": " ".join(query_parts), "maxResults": str(limit)}
        if self._api_key:
            params["key"] = self._api_key

        try:
            data = self._http.get(_VOLUMES_URL, params=params)
        except MetadataFetchError as exc:
            logger.warning(
                "Google Books search failed for title=%s author=%s: %s", title, author, exc
            )
            return []

        items = data.get("items")
        if not isinstance(items, list):
            return []

        nt = normalize_text(title)
        na = normalize_text(author)
        candidates = []
        for item in items:
            if not isinstance(item, dict):
                continue
            parsed = parse_volume(item)
            if parsed is None:
                continue
            c_title, c_author, isbn, year = parsed
            candidates.append(
                ExternalCandidate(
                    title=c_title,
                    author=c_author,
                    isbn=isbn,
                    year=year,
                    source=self.name,
                    score=score_pair(nt, na, normalize_text(c_title), normalize_text(c_author)),
                )
            )
        candidates.sort(key=lambda c: c.score, reverse=True)
        return candidates
