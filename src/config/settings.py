"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# This class uses pydantic-settings to read configuration from TWO
# sources (in priority order):
#
#   1. **Environment variables** — e.g., OPENAI_API_KEY=gsk_abc123
#      (highest priority — always wins)
#   2. **.env file** — key=value lines in the project root .env file
#      (lower priority — used for local development)
#
# The mapping is automatic: field name `openai_api_key` maps to env var
# `OPENAI_API_KEY`.  Default values are used when neither exists.
#
# Non-secret tuning values (OCR, transcription, cleanup prompt) live in
# config/config.yaml and are read by src/config/loader.py.
# ──────────────────────────────────────────────────────────────────────
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Groq exposes an OpenAI-compatible API; point the openai SDK at it.
GROQ_BASE_URL = "https://api.groq.com/openai/v1"

# 45 MiB, the upload limit of the original deployment.
DEFAULT_MAX_UPLOAD_BYTES = 45 * 1024 * 1024


class Settings(BaseSettings):
    """studyrag application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === LLM / API Providers ===
    # Empty string = "not configured" → cleanup is disabled and audio
    # uploads are stored but not transcribed.
    openai_api_key: str = ""
    openai_base_url: str = GROQ_BASE_URL
    openai_text_model: str = "llama-3.1-8b-instant"
    openai_transcription_model: str = "whisper-large-v3"
    openai_embedding_model: str = "text-embedding-3-small"
    openai_timeout_seconds: float = 30.0

    # === Vectorizer ===
    # "hash" = deterministic surrogate (no network); "openai" = embeddings API.
    embedding_backend: Literal["hash", "openai"] = "hash"
    embedding_dimension: int = Field(default=768, gt=0)

    # === Storage ===
    database_path: str = "data/studyrag.db"
    upload_dir: str = "data/uploads"
    max_upload_bytes: int = Field(default=DEFAULT_MAX_UPLOAD_BYTES, gt=0)

    # === Chunking ===
    chunk_size: int = Field(default=500, gt=0)
    chunk_overlap: int = Field(default=50, ge=0)
    # Size chunks by document length and category instead of chunk_size.
    adaptive_chunking: bool = False

    # === Retrieval ===
    retrieval_top_k: int = Field(default=5, gt=0)
    keyword_search_limit: int = Field(default=5, gt=0)

    # === Ingestion concurrency ===
    ingestion_concurrency: int = Field(default=2, gt=0)
    embedding_concurrency: int = Field(default=8, gt=0)

    # === OCR ===
    tesseract_lang: str = "eng"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    @property
    def llm_configured(self) -> bool:
        """True when an API key for the OpenAI-compatible endpoint is set."""
        return bool(self.openai_api_key)
