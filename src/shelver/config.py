# ABOUTME: Environment-driven settings for Shelver (SHELVER_* variables or a .env file).
# ABOUTME: Built once at the edge and passed down as explicit constructor arguments.

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shelver.metadata.resolver import ResolverConfig
from shelver.metadata.scoring import CATALOG_MIN_SCORE, EXTERNAL_MIN_SCORE

DEFAULT_TEXT_INSTRUCTION = (
    "Extract every book mentioned in the text below. Return JSON with a 'books' array "
    "where each element has 'title' and 'author'. Use an empty string for an unknown "
    "author. Do not invent books that are not mentioned."
)
DEFAULT_IMAGE_INSTRUCTION = (
    "The image shows book spines or covers. List every book you can read. Return JSON "
    "with a 'books' array where each element has 'title' and 'author'. Skip books whose "
    "title is unreadable."
)


class Settings(BaseSettings):
    """Configuration for the Shelver engine and its collaborators."""

    model_config = SettingsConfigDict(
        env_prefix="SHELVER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    db_path: Path = Field(
        default=Path.home() / ".shelver" / "shelver.db",
        description="SQLite database holding the catalog and the confirmation queue",
    )
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SHELVER_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="API key for the extraction and transcription models",
    )
    openai_base_url: str | None = Field(
        default=None, description="Override for the OpenAI endpoint"
    )
    google_books_api_key: str | None = Field(default=None, description="Optional Google Books key")

    llm_model: str = Field(default="gpt-4o", description="Chat model used for extraction")
    transcription_model: str = Field(default="whisper-1", description="Speech-to-text model")
    instruction_text: str = Field(default=DEFAULT_TEXT_INSTRUCTION)
    instruction_audio: str | None = Field(
        default=None, description="Instruction for dictated text; falls back to instruction_text"
    )
    instruction_image: str = Field(default=DEFAULT_IMAGE_INSTRUCTION)

    catalog_min_score: float = Field(default=CATALOG_MIN_SCORE, ge=0, le=100)
    external_min_score: float = Field(default=EXTERNAL_MIN_SCORE, ge=0, le=100)
    external_providers: list[str] = Field(default_factory=lambda: ["openlibrary", "googlebooks"])
    year_cache_ttl: int = Field(default=86400, ge=0, description="Year lookup cache TTL in seconds")

    llm_timeout: float = Field(default=90.0, gt=0)
    transcription_timeout: float = Field(default=60.0, gt=0)
    metadata_timeout: float = Field(default=15.0, gt=0)

    debug: bool = Field(default=False, description="Show raw upstream errors to callers")

    def resolver_config(self) -> ResolverConfig:
        """Build the external metadata resolver's configuration."""
        return ResolverConfig(
            min_score=self.external_min_score,
            providers=tuple(self.external_providers),
            year_cache_ttl=self.year_cache_ttl,
        )

    def audio_instruction(self) -> str:
        return self.instruction_audio or self.instruction_text
