"""Unit tests for Settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from src.config.loader import load_config
from src.config.settings import GROQ_BASE_URL, Settings


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        settings = Settings(_env_file=None)

        assert settings.openai_base_url == GROQ_BASE_URL
        assert settings.embedding_backend == "hash"
        assert settings.chunk_size == 500
        assert settings.chunk_overlap == 50
        assert settings.llm_configured is False

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "gsk_test")
        monkeypatch.setenv("CHUNK_SIZE", "800")
        monkeypatch.setenv("EMBEDDING_BACKEND", "openai")

        settings = Settings(_env_file=None)

        assert settings.llm_configured is True
        assert settings.chunk_size == 800
        assert settings.embedding_backend == "openai"

    def test_invalid_values_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EMBEDDING_BACKEND", "word2vec")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

        monkeypatch.delenv("EMBEDDING_BACKEND")
        with pytest.raises(ValidationError):
            Settings(_env_file=None, chunk_size=0)


class TestLoadConfig:
    def test_yaml_values_kept_and_settings_win(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "ocr:\n  lang: fra\n  max_dimension: 1500\n"
            "cleanup:\n  temperature: 0.1\n"
            "chunking:\n  chunk_size: 300\n"
        )
        settings = Settings(_env_file=None, chunk_size=650, tesseract_lang="eng+fra")

        config = load_config(str(path), settings=settings)

        assert config["ocr"] == {"lang": "eng+fra", "max_dimension": 1500}
        assert config["cleanup"]["temperature"] == 0.1
        assert config["chunking"]["chunk_size"] == 650

    def test_missing_file_yields_settings_only(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=Settings(_env_file=None))

        assert config["retrieval"]["top_k"] == 5
        assert "cleanup" not in config

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("")

        settings = Settings(_env_file=None, log_level="WARNING")

        config = load_config(str(path), settings=settings)

        assert config["logging"]["level"] == "WARNING"

    def test_repository_config_parses(self) -> None:
        repo_config = Path(__file__).resolve().parents[2] / "config" / "config.yaml"

        config = load_config(str(repo_config), settings=Settings(_env_file=None))

        assert config["transcription"]["max_file_mb"] == 10
        assert config["ocr"]["max_dimension"] == 2000
        assert config["answer"] == {"temperature": 0.7, "max_tokens": 1000}
