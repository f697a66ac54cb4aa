"""Abstract base class for completion API providers.

Defines the contract for the large-language-model backend used for keyword
extraction (single completions) and question answering (token-incremental
streams).  Implementations wrap any OpenAI-compatible chat endpoint.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence


class ILLMProvider(ABC):
    """Contract for LLM services used throughout the VentureLens pipeline."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> str:
        """Generate a single text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user-facing content the instruction is applied to.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        venturelens.utils.errors.LLMError
            If the API call fails or returns an empty response.
        """

    @abstractmethod
    def stream_chat(self, messages: Sequence[dict[str, str]]) -> AsyncIterator[bytes]:
        """Stream a chat completion as raw server-sent-event bytes.

        The returned async iterator yields the transport's byte chunks
        unmodified; line framing and JSON decoding are the caller's job
        (see :mod:`venturelens.services.stream_decoder`).  Closing the
        iterator cancels the in-flight request.

        Raises
        ------
        venturelens.utils.errors.RateLimitError
            When the provider answers HTTP 429.
        venturelens.utils.errors.QuotaExhaustedError
            When the provider answers HTTP 402.
        venturelens.utils.errors.LLMError
            For any other failure.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this LLM provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has credentials configured."""
