"""Tests for torrentsearch.config -- configuration validation and env loading."""

from __future__ import annotations

import pytest

from torrentsearch.config import SearchConfig
from torrentsearch.models import OrderBy


class TestSearchConfigValidation:
    def test_defaults_are_valid(self) -> None:
        config = SearchConfig()
        assert config.default_limit == 20
        assert config.default_order_by == OrderBy("published_at", descending=True)
        assert config.default_query_order_by == OrderBy("relevance", descending=True)
        assert config.default_language == "en"
        assert config.available_languages == ("en", "fr", "es", "de", "zh")

    def test_limit_too_low(self) -> None:
        with pytest.raises(ValueError, match="default_limit must be >= 1"):
            SearchConfig(default_limit=0)

    def test_structural_default_cannot_be_relevance(self) -> None:
        with pytest.raises(ValueError, match="default_order_by"):
            SearchConfig(default_order_by=OrderBy("relevance"))

    def test_unknown_order_field(self) -> None:
        with pytest.raises(ValueError, match="unknown field"):
            SearchConfig(default_order_by=OrderBy("popularity"))

    def test_query_default_must_be_relevance(self) -> None:
        with pytest.raises(ValueError, match="default_query_order_by"):
            SearchConfig(default_query_order_by=OrderBy("size"))

    def test_default_language_must_be_available(self) -> None:
        with pytest.raises(ValueError, match="default_language"):
            SearchConfig(default_language="it")

    def test_frozen(self) -> None:
        config = SearchConfig()
        with pytest.raises(AttributeError):
            config.default_limit = 10  # type: ignore[misc]

    def test_multiple_validation_errors(self) -> None:
        with pytest.raises(ValueError) as exc_info:
            SearchConfig(default_limit=0, default_language="it")
        assert "default_limit" in str(exc_info.value)
        assert "default_language" in str(exc_info.value)


class TestSearchConfigFromEnv:
    def test_reads_limit_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TORRENTSEARCH_DEFAULT_LIMIT", "50")
        assert SearchConfig.from_env().default_limit == 50

    def test_invalid_limit_env_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TORRENTSEARCH_DEFAULT_LIMIT", "lots")
        with pytest.raises(ValueError, match="TORRENTSEARCH_DEFAULT_LIMIT"):
            SearchConfig.from_env()

    def test_reads_languages_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TORRENTSEARCH_AVAILABLE_LANGUAGES", "de, en ,")
        monkeypatch.setenv("TORRENTSEARCH_DEFAULT_LANGUAGE", "de")
        config = SearchConfig.from_env()
        assert config.available_languages == ("de", "en")
        assert config.default_language == "de"

    def test_overrides_take_precedence(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TORRENTSEARCH_DEFAULT_LIMIT", "50")
        assert SearchConfig.from_env(default_limit=10).default_limit == 10

    def test_none_overrides_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("TORRENTSEARCH_DEFAULT_LIMIT", raising=False)
        monkeypatch.delenv("TORRENTSEARCH_DEFAULT_LANGUAGE", raising=False)
        config = SearchConfig.from_env(default_limit=None, default_language=None)
        assert config.default_limit == 20
        assert config.default_language == "en"
