# ABOUTME: Builds the engine's collaborators from Settings for CLI commands.
# ABOUTME: Tests patch these functions to swap in fakes for the network-backed pieces.

import sqlite3

from shelver.config import Settings
from shelver.core.matcher import Matcher
from shelver.db.cache import LookupCache
from shelver.db.catalog import CatalogStore
from shelver.extraction.extractor import BookExtractor
from shelver.extraction.llm import OpenAILlmClient
from shelver.metadata.http import ShelverHttpClient
from shelver.metadata.resolver import MetadataResolver, create_providers


def create_matcher(settings: Settings, conn: sqlite3.Connection) -> Matcher:
    """Catalog matcher using the configured similarity floor."""
    return Matcher(CatalogStore(conn), min_score=settings.catalog_min_score)


def create_resolver(settings: Settings, conn: sqlite3.Connection) -> MetadataResolver:
    """Resolver over the configured providers, with the year cache in `conn`."""
    config = settings.resolver_config()
    http_client = ShelverHttpClient(timeout=settings.metadata_timeout)
    providers = create_providers(
        config, http_client, google_api_key=settings.google_books_api_key
    )
    return MetadataResolver(providers, config, cache=LookupCache(conn))


def create_extractor(settings: Settings) -> BookExtractor:
    """Extractor backed by the OpenAI chat and transcription APIs."""
    llm = OpenAILlmClient(
        api_key=settings.openai_api_key,
        model=settings.llm_model,
        transcription_model=settings.transcription_model,
        timeout=settings.llm_timeout,
        transcription_timeout=settings.transcription_timeout,
        base_url=settings.openai_base_url,
    )
    return BookExtractor(
        llm,
        text_instruction=settings.instruction_text,
        audio_instruction=settings.audio_instruction(),
        image_instruction=settings.instruction_image,
    )
