"""LLM provider adapters.

One concrete implementation of ILLMProvider (venturelens/interfaces/llm_provider.py):
    - OpenAICompatibleLLMProvider -- any OpenAI-compatible chat endpoint
      (Gemini's OpenAI surface by default)
"""

from venturelens.providers.llm.openai_provider import OpenAICompatibleLLMProvider

__all__ = ["OpenAICompatibleLLMProvider"]
