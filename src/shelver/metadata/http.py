# ABOUTME: HTTP client abstraction for bibliographic provider API calls.
# ABOUTME: One bounded attempt per request, with an injectable transport for tests.

from typing import Any, Protocol, runtime_checkable

import httpx

from shelver import __version__
from shelver.errors import UpstreamError


class MetadataFetchError(UpstreamError):
    """A provider request timed out, failed, or answered with something unusable."""


@runtime_checkable
class HttpClient(Protocol):
    """What providers need from HTTP: a JSON GET."""

    def get(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]: ...


class ShelverHttpClient:
    """httpx-backed HttpClient used by every metadata provider.

    Requests carry a Shelver User-Agent and a bounded timeout. Nothing is
    retried; a failed lookup is reported to the caller, who decides whether
    to resubmit.
    """

    def __init__(
        self,
        *,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            headers={"User-Agent": f"shelver/{__version__}", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def get(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """GET a URL and return its JSON object body.

        Raises:
            MetadataFetchError: On transport errors and timeouts, any non-200
                answer, or a body that is not a JSON object.
        """
        try:
            response = self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise MetadataFetchError(f"Request failed: {url}", detail=str(exc)) from exc

        if response.status_code != 200:
            raise MetadataFetchError(
                f"HTTP {response.status_code} from {url}", detail=response.text[:500]
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise MetadataFetchError(f"Invalid JSON from {url}", detail=str(exc)) from exc
        if not isinstance(data, dict):
            raise MetadataFetchError(f"Unexpected JSON shape from {url}")
        return data

    def close(self) -> None:
        self._client.close()
