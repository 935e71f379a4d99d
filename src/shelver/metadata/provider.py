# ABOUTME: MetadataProvider protocol defining the contract for bibliographic sources.
# ABOUTME: Open Library and Google Books implement this; the resolver only sees the protocol.

from typing import Protocol, runtime_checkable

from shelver.metadata.candidate import ExternalCandidate


@runtime_checkable
class MetadataProvider(Protocol):
    """Protocol for title/author lookup services.

    Implementations return up to `limit` candidates. An unreachable or
    failing service yields an empty list, never an exception.
    """

    @property
    def name(self) -> str: ...

    def search(self, title: str, author: str, limit: int = 5) -> list[ExternalCandidate]: ...
