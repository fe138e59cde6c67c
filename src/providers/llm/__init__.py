"""LLM provider adapters.

Two concrete implementations of ILLMProvider (src/interfaces/llm_provider.py):
    - AnthropicLLMProvider — Claude (text + vision); the default extractor
    - OpenAILLMProvider    — gpt-4o-mini / gpt-4o, or any OpenAI-compatible API

The CLI builds the first provider with a configured key, Anthropic first.
"""

from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "OpenAILLMProvider"]
