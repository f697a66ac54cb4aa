"""Public interface definitions for all external collaborators.

Every external API or service is accessed exclusively through the abstract
base classes defined here.  Concrete adapters live in
``venturelens/providers/`` and are injected at startup by
``venturelens/main.py``; unit tests inject mocks instead.

    Interface            ->  Concrete implementations
    ------------------------------------------------------------------
    ILLMProvider         ->  OpenAICompatibleLLMProvider
    IScraperProvider     ->  FirecrawlScraperProvider, WebScraperProvider
    IWebSearchProvider   ->  PerplexitySearchProvider
    IKnowledgeStore      ->  SQLiteKnowledgeStore
"""

from venturelens.interfaces.llm_provider import ILLMProvider
from venturelens.interfaces.scraper_provider import IScraperProvider, ScrapedPage
from venturelens.interfaces.storage_provider import IKnowledgeStore
from venturelens.interfaces.web_search_provider import IWebSearchProvider

__all__ = [
    "IKnowledgeStore",
    "ILLMProvider",
    "IScraperProvider",
    "IWebSearchProvider",
    "ScrapedPage",
]
