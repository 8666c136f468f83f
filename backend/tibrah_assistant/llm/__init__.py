"""LLM module - provides unified interface for LLM API providers."""

from .base import LLMProvider, LLMMessage, LLMResponse
from .gemini_provider import GeminiProvider
from .groq_provider import GroqProvider
from .factory import create_llm_provider, build_provider_chain

__all__ = [
    'LLMProvider',
    'LLMMessage',
    'LLMResponse',
    'GeminiProvider',
    'GroqProvider',
    'create_llm_provider',
    'build_provider_chain',
]
