# ABOUTME: Canonicalizes title/author strings for hashing and fuzzy comparison.
# ABOUTME: Also repairs run-together spine text ("TheNameOfTheWind") before it is queued.

import html
import re
import unicodedata
from typing import Any

import wordninja

# Spaceless runs shorter than this ("Dune", "1984") are never split.
_MIN_RUN_LENGTH = 8

# Upper bound on normalization passes; real input settles in one or two.
_MAX_PASSES = 10

_BLOCK_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
# Letters, digits, whitespace and a few separators survive; anything else becomes a space.
_DISALLOWED_RE = re.compile(r"[^\w\s\-'\":]")
_NON_ALNUM_RE = re.compile(r"[^\w\s]|_")

_JOINED_CAPS_RE = re.compile(r"[a-z][A-Z]")
# Zero-width split points: "e|N" in "TheName", "L|N" in "HTMLNotes".
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")

# Letters that NFKD leaves intact but that readers treat as their ASCII spelling.
_FOLD_TABLE = str.maketrans(
    {
        "ß": "ss",
        "æ": "ae",
        "ø": "o",
        "ł": "l",
        "đ": "d",
        "œ": "oe",
        "ð": "d",
        "þ": "th",
    }
)

# Articles, conjunctions and prepositions in Spanish and English.
STOPWORDS = frozenset(
    {
        "el",
        "la",
        "los",
        "las",
        "un",
        "una",
        "unos",
        "unas",
        "de",
        "del",
        "y",
        "e",
        "a",
        "en",
        "the",
        "of",
        "and",
        "to",
        "for",
    }
)


def _strip_markup(text: str) -> str:
    text = _BLOCK_RE.sub(" ", text)
    return _TAG_RE.sub(" ", text)


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _normalize_once(text: str) -> str:
    text = _strip_markup(text)
    text = html.unescape(text)
    text = text.lower()
    text = _strip_accents(text)
    text = text.translate(_FOLD_TABLE)
    text = _DISALLOWED_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_text(text: Any) -> str:
    """Canonicalize a title or author for exact comparison and hashing.

    Strips markup, decodes HTML entities, lowercases, removes diacritics,
    replaces stray punctuation with spaces, and collapses whitespace. The
    pipeline is repeated until the output stops changing, so
    normalize_text(normalize_text(x)) == normalize_text(x).

    Any value is coerced to str first; None and empty input yield "".
    """
    if text is None:
        return ""
    current = str(text)
    for _ in range(_MAX_PASSES):
        result = _normalize_once(current)
        if result == current:
            break
        current = result
    return current


def normalize_key(text: Any) -> str:
    """Stricter normalization for fuzzy matching.

    On top of normalize_text: drops every non-alphanumeric character,
    removes Spanish/English stopwords, and sorts the remaining tokens so
    word order no longer matters ("Julio César" == "César Julio").
    """
    base = _NON_ALNUM_RE.sub(" ", normalize_text(text))
    tokens = [tok for tok in base.split() if tok not in STOPWORDS]
    return " ".join(sorted(tokens))


def needs_splitting(text: str) -> bool:
    """Whether spine text looks run together.

    True for underscores, a lowercase letter directly followed by a
    capital, or a hyphen-separated piece of at least eight characters
    with no space in it. "Spider-Man" and "The Name of the Wind" pass.
    """
    stripped = text.strip()
    if not stripped:
        return False
    if "_" in stripped or _JOINED_CAPS_RE.search(stripped):
        return True
    return any(" " not in piece and len(piece) >= _MIN_RUN_LENGTH for piece in stripped.split("-"))


def split_concatenated(text: str) -> str:
    """Split a run-together spine reading into space-separated words.

    Underscores become spaces, capital-letter boundaries are split, and
    long all-lowercase runs go through wordninja's unigram model. Hyphens
    stay where they are.
    """
    if not needs_splitting(text):
        return text

    words: list[str] = []
    for token in text.replace("_", " ").split():
        for part in _CAMEL_BOUNDARY_RE.split(token):
            if not part:
                continue
            if part.islower() and len(part) >= _MIN_RUN_LENGTH and "-" not in part:
                words.extend(wordninja.split(part) or [part])
            else:
                words.append(part)
    return " ".join(words)
