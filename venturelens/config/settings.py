"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from two sources (in priority order):

  1. **Environment variables** -- e.g. ``LLM_API_KEY=...`` (always wins)
  2. **.env file** -- key=value lines in the project root ``.env`` file

Field ``llm_api_key`` maps to env var ``LLM_API_KEY`` automatically.
Defaults apply when neither source defines a value.

Besides provider credentials, every tunable constant of the ingestion,
retrieval, extraction and crawl pipeline lives here so it can be changed per
deployment without touching code.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """VentureLens application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Completion API (OpenAI-compatible) ===
    # Empty key = "not configured" -> keyword tagging is skipped and queries
    # are rejected with a ConfigurationError.
    llm_api_key: str = ""
    llm_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    llm_model: str = "gemini-1.5-flash"
    llm_timeout_seconds: float = 60.0

    # === Scraping API ===
    firecrawl_api_key: str = ""
    firecrawl_base_url: str = "https://api.firecrawl.dev"

    # === Web search ===
    perplexity_api_key: str = ""
    perplexity_base_url: str = "https://api.perplexity.ai"
    perplexity_model: str = "sonar"

    # === Storage ===
    database_path: str = "data/venturelens.db"

    # === Chunking ===
    document_chunk_size: int = 800
    document_chunk_overlap: int = 150
    web_chunk_size: int = 1000
    min_chunk_chars: int = 50

    # === Extraction ===
    min_extracted_chars: int = 10
    pdf_fallback_threshold: int = 100

    # === Keyword tagging ===
    keyword_prefix_chars: int = 1500
    keyword_tagged_chunk_limit: int = 20

    # === Retrieval ===
    retrieval_pool_size: int = 50
    retrieval_top_n: int = 5
    history_turns: int = 10

    # === Funding extraction ===
    # Approximate INR -> USD conversion assumptions, not live FX rates.
    crore_to_usd: float = 12_000_000.0
    lakh_to_usd: float = 12_000.0
    max_deal_records: int = 50

    # === Crawling ===
    crawl_freshness_hours: float = 12.0
    crawl_delay_seconds: float = 1.0
    crawl_min_content_chars: int = 100

    # === App Config ===
    config_path: str = "config/config.yaml"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_providers(self) -> list[str]:
        """Return the names of external providers that have credentials configured."""
        providers: list[str] = []
        if self.llm_api_key:
            providers.append("llm")
        if self.firecrawl_api_key:
            providers.append("firecrawl")
        if self.perplexity_api_key:
            providers.append("perplexity")
        return providers
