# ABOUTME: Parsing functions for Open Library search.json responses.
# ABOUTME: Converts OL docs into plain title/author/isbn/year records.

import re
from dataclasses import dataclass
from typing import Any

from shelver.metadata.candidate import first_year

_ISBN13_RE = re.compile(r"^\d{13}$")


@dataclass
class OpenLibraryDoc:
    """The fields Shelver uses from one search.json doc."""

    title: str
    author: str
    isbn: str | None
    year: int | None


def _first_string(value: Any) -> str:
    if isinstance(value, list) and value:
        return str(value[0])
    return ""


def pick_isbn(isbns: Any) -> str | None:
    """Prefer a 13-digit ISBN; otherwise take the first one listed."""
    if not isinstance(isbns, list) or not isbns:
        return None
    for isbn in isbns:
        if _ISBN13_RE.match(str(isbn)):
            return str(isbn)
    return str(isbns[0])


def parse_doc(doc: dict[str, Any]) -> OpenLibraryDoc | None:
    """Parse a single search doc. Returns None when it has no title.

    Title comes from `title`, falling back to `title_suggest`; author from
    the first `author_name`, falling back to `author_alternative_name`.
    """
    title = doc.get("title")
    if not isinstance(title, str) or not title:
        title = doc.get("title_suggest")
    if not isinstance(title, str) or not title:
        return None

    author = _first_string(doc.get("author_name")) or _first_string(
        doc.get("author_alternative_name")
    )

    return OpenLibraryDoc(
        title=title,
        author=author,
        isbn=pick_isbn(doc.get("isbn")),
        year=first_year(
            doc.get("first_publish_year"),
            doc.get("publish_year"),
            doc.get("publish_date"),
        ),
    )


def parse_search_results(data: dict[str, Any]) -> list[OpenLibraryDoc]:
    """Parse a search.json response. Missing or empty `docs` yields []."""
    docs = data.get("docs")
    if not isinstance(docs, list):
        return []
    results = []
    for doc in docs:
        if not isinstance(doc, dict):
            continue
        parsed = parse_doc(doc)
        if parsed is not None:
            results.append(parsed)
    return results
