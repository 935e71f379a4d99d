# ABOUTME: Exception taxonomy shared by every Shelver layer.
# ABOUTME: Separates input, upstream, and configuration failures so callers never sniff strings.

_GENERIC_MESSAGES = {
    "input": "The request could not be processed.",
    "upstream": "An external service failed. Please try again later.",
    "configuration": "Shelver is not configured correctly.",
}


class ShelverError(Exception):
    """Base class for all errors raised by Shelver."""

    kind = "input"

    def user_message(self, debug: bool = False) -> str:
        """Message safe to show a caller; the full detail only in debug mode."""
        if debug:
            return str(self)
        return _GENERIC_MESSAGES[self.kind]


class InvalidInputError(ShelverError):
    """Raised for empty text, missing files, or malformed payloads."""

    def user_message(self, debug: bool = False) -> str:
        # Input errors describe what the caller sent, so they are always shown.
        return str(self)


class RowNotFoundError(InvalidInputError):
    """Raised when a pending row id does not exist."""


class RowAccessError(InvalidInputError):
    """Raised when a pending row belongs to another user."""


class RowNotEditableError(InvalidInputError):
    """Raised when a row is no longer pending."""


class UpstreamError(ShelverError):
    """Raised when the LLM, transcription, or a metadata service fails.

    Attributes:
        detail: Raw upstream error text kept for diagnostics.
    """

    kind = "upstream"

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail

    def user_message(self, debug: bool = False) -> str:
        if debug and self.detail:
            return f"{self}: {self.detail}"
        return super().user_message(debug)


class ExtractionSchemaError(UpstreamError):
    """Raised when the model's answer does not match the books schema."""


class ConfigurationError(ShelverError):
    """Raised when a required setting or collaborator is missing."""

    kind = "configuration"


class CatalogNotReadyError(ConfigurationError):
    """Raised when the catalog tables owned by the collaborator are absent."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Catalog tables missing: {', '.join(missing)}")
        self.missing = missing
