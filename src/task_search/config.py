"""Configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # LLM Providers
    # =========================================================================
    openai_api_key: str | None = Field(default=None)
    openai_org_id: str | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)

    anthropic_api_key: str | None = Field(default=None)

    ollama_url: str | None = Field(default=None)

    default_llm_provider: Literal["openai", "anthropic", "ollama"] = Field(
        default="openai",
        description="Default LLM provider to use",
    )
    default_llm_model: str = Field(
        default="gpt-4o-mini",
        description="Default model for query analysis",
    )

    # =========================================================================
    # Language Analysis
    # =========================================================================
    llm_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        le=120.0,
        description="Upper bound for a single language-analysis call",
    )
    llm_max_tokens: int = Field(
        default=500,
        ge=16,
        le=8000,
        description="Maximum response tokens for analysis prompts",
    )
    date_analysis_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for date interpretation",
    )
    semantic_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for semantic keyword extraction",
    )
    ranking_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for LLM relevance scoring",
    )
    llm_ranking_enabled: bool = Field(
        default=False,
        description="Score candidate relevance with the LLM instead of lexical matching",
    )

    # =========================================================================
    # Search Settings
    # =========================================================================
    default_max_results: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Number of results returned when the query does not specify one",
    )

    # =========================================================================
    # Notion Task Store
    # =========================================================================
    notion_api_key: str | None = Field(default=None)
    notion_api_url: str = Field(
        default="https://api.notion.com",
        description="Notion REST API base URL",
    )
    notion_version: str = Field(
        default="2022-06-28",
        description="Value sent in the Notion-Version header",
    )
    notion_status_property: str = Field(
        default="Status",
        description="Database property used for list-by-status queries",
    )
    notion_timeout_seconds: float = Field(default=30.0, gt=0.0)

    # =========================================================================
    # Logging
    # =========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
    )
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="Log output format",
    )

    # =========================================================================
    # Server
    # =========================================================================
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    debug: bool = Field(default=False)

    @property
    def has_openai(self) -> bool:
        """Check if OpenAI is configured."""
        return bool(self.openai_api_key and self.openai_api_key.strip())

    @property
    def has_anthropic(self) -> bool:
        """Check if Anthropic is configured."""
        return bool(self.anthropic_api_key and self.anthropic_api_key.strip())

    @property
    def has_ollama(self) -> bool:
        """Check if Ollama is configured."""
        return bool(self.ollama_url and self.ollama_url.strip())

    @property
    def has_notion(self) -> bool:
        """Check if a Notion integration token is configured."""
        return bool(self.notion_api_key and self.notion_api_key.strip())

    @property
    def available_providers(self) -> list[str]:
        """List of available LLM providers."""
        providers = []
        if self.has_openai:
            providers.append("openai")
        if self.has_anthropic:
            providers.append("anthropic")
        if self.has_ollama:
            providers.append("ollama")
        return providers


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
