# ABOUTME: Unit tests for environment-driven Settings.
# ABOUTME: Checks defaults, the SHELVER_ prefix, the OPENAI_API_KEY alias, and derived configs.

from pathlib import Path

import pytest

from shelver.config import DEFAULT_TEXT_INSTRUCTION, Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate tests from the developer's environment and any .env file."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "OPENAI_API_KEY",
        "SHELVER_OPENAI_API_KEY",
        "SHELVER_EXTERNAL_MIN_SCORE",
        "SHELVER_EXTERNAL_PROVIDERS",
        "SHELVER_INSTRUCTION_AUDIO",
        "SHELVER_DB_PATH",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.catalog_min_score == 55.0
        assert settings.external_min_score == 62.0
        assert settings.external_providers == ["openlibrary", "googlebooks"]
        assert settings.openai_api_key is None
        assert settings.debug is False

    def test_prefixed_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHELVER_EXTERNAL_MIN_SCORE", "70")
        monkeypatch.setenv("SHELVER_EXTERNAL_PROVIDERS", '["googlebooks"]')
        monkeypatch.setenv("SHELVER_DB_PATH", "/tmp/other.db")
        settings = Settings()
        assert settings.external_min_score == 70.0
        assert settings.external_providers == ["googlebooks"]
        assert settings.db_path == Path("/tmp/other.db")

    def test_openai_key_alias(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-plain")
        assert Settings().openai_api_key == "sk-plain"

    def test_dotenv_file(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("SHELVER_LLM_MODEL=gpt-4o-mini\n")
        assert Settings().llm_model == "gpt-4o-mini"

    def test_score_bounds(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHELVER_EXTERNAL_MIN_SCORE", "150")
        with pytest.raises(ValueError):
            Settings()

    def test_resolver_config(self) -> None:
        settings = Settings(external_min_score=80, external_providers=["openlibrary"])
        config = settings.resolver_config()
        assert config.min_score == 80
        assert config.providers == ("openlibrary",)
        assert config.year_cache_ttl == 86400

    def test_audio_instruction_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        assert Settings().audio_instruction() == DEFAULT_TEXT_INSTRUCTION
        monkeypatch.setenv("SHELVER_INSTRUCTION_AUDIO", "Dictated.")
        assert Settings().audio_instruction() == "Dictated."
