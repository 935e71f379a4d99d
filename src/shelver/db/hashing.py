# ABOUTME: SHA-256 identity fingerprint for (title, author) pairs.
# ABOUTME: The exact-dedup key shared by the catalog and the confirmation queue.

import hashlib

from shelver.metadata.normalizer import normalize_text


def fingerprint(title: object, author: object) -> str:
    """Compute the identity fingerprint of a (title, author) pair.

    Hashes normalize_text(title) + "|" + normalize_text(author). Stopwords
    are kept, so the fingerprint is an exact-match key only; fuzzy matching
    is a separate tier.

    Returns:
        Lowercase hex digest string (64 characters).
    """
    key = f"{normalize_text(title)}|{normalize_text(author)}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()
