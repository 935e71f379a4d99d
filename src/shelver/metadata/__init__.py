# ABOUTME: Metadata package: text normalization, similarity scoring, and external lookups.
# ABOUTME: Exports the normalizer and scorer used throughout Shelver.

from shelver.metadata.candidate import ExternalCandidate
from shelver.metadata.normalizer import normalize_key, normalize_text
from shelver.metadata.provider import MetadataProvider
from shelver.metadata.scoring import CATALOG_MIN_SCORE, EXTERNAL_MIN_SCORE, score_pair

__all__ = [
    "CATALOG_MIN_SCORE",
    "EXTERNAL_MIN_SCORE",
    "ExternalCandidate",
    "MetadataProvider",
    "normalize_key",
    "normalize_text",
    "score_pair",
]
