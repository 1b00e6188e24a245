# chatcore/config.py

"""
Configuration module for chatcore.

Defines the runtime configuration using Pydantic's `BaseSettings`, so values
come from environment variables or a `.env` file with validation and
defaults. Which source wins is pydantic-settings' business; the generator
layer only ever sees the resolved values.

This config powers:
- Backend selection (Ollama vs. Gemini)
- Model identifiers and endpoint overrides
- Credentials for the cloud backend
- Network timeouts
- Log verbosity

`Settings.generator_config()` turns the settings into the plain
`ContentGeneratorConfig` consumed by `chatcore.adapters.factory`.
"""

from pydantic import AnyHttpUrl, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chatcore.generator_config import (
    DEFAULT_GEMINI_API_BASE,
    DEFAULT_MODELS,
    DEFAULT_OLLAMA_URL,
    AuthType,
    ContentGeneratorConfig,
)


class Settings(BaseSettings):
    # ─── Backend Selection ─────────────────────────────────────────────────────
    # validated by the factory, so an unknown value surfaces as UnsupportedBackend
    llm_backend: str = AuthType.OLLAMA.value
    llm_model: str | None = None  # falls back to the backend's DEFAULT_MODELS entry

    # ─── Endpoints ─────────────────────────────────────────────────────────────
    ollama_url: AnyHttpUrl = DEFAULT_OLLAMA_URL
    gemini_api_base: AnyHttpUrl = DEFAULT_GEMINI_API_BASE

    # ─── Secrets ───────────────────────────────────────────────────────────────
    gemini_api_key: SecretStr | None = None

    # ─── Generation ────────────────────────────────────────────────────────────
    embedding_model: str = "gemini-embedding-001"
    ollama_incremental_streaming: bool = False

    # ─── Network ───────────────────────────────────────────────────────────────
    request_timeout: float = Field(default=120.0, gt=0)
    connect_timeout: float = Field(default=10.0, gt=0)

    # ─── Logging ───────────────────────────────────────────────────────────────
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # unrelated env vars in .env are fine
    )

    # ─── Validators ────────────────────────────────────────────────────────────
    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        """
        Normalises the level name and rejects anything `logging` would not accept.
        """
        level = v.strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"unknown log level {v!r}")
        return level

    def generator_config(self) -> ContentGeneratorConfig:
        """
        Resolve the settings into the configuration the generator factory consumes.

        Returns:
            ContentGeneratorConfig: Backend, model, endpoint and credentials for the
            selected backend.
        """
        backend: AuthType | str
        try:
            backend = AuthType(self.llm_backend)
        except ValueError:
            backend = self.llm_backend

        if backend is AuthType.OLLAMA:
            base_url = str(self.ollama_url)
        else:
            base_url = str(self.gemini_api_base)

        return ContentGeneratorConfig(
            backend=backend,
            model=self.llm_model or DEFAULT_MODELS.get(backend, ""),
            base_url=base_url.rstrip("/"),
            api_key=self.gemini_api_key,
            timeout=self.request_timeout,
            connect_timeout=self.connect_timeout,
            incremental_streaming=self.ollama_incremental_streaming,
            embedding_model=self.embedding_model,
        )


# Instantiate a singleton config object, importable throughout the package
settings = Settings()
