"""Web-search provider implementations.

Currently only Perplexity (``sonar`` model, needs PERPLEXITY_API_KEY).
"""

from venturelens.providers.search.perplexity_provider import PerplexitySearchProvider

__all__ = ["PerplexitySearchProvider"]
