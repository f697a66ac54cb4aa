"""Abstract base class for web-search answer providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from venturelens.models.query import WebSearchAnswer


class IWebSearchProvider(ABC):
    """Contract for services that answer a question from live web results."""

    @abstractmethod
    async def search(self, query: str, language_instruction: str) -> WebSearchAnswer:
        """Answer *query* from the web, responding per *language_instruction*.

        Raises
        ------
        venturelens.utils.errors.WebSearchError
            If the provider call fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this search provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has credentials configured."""
