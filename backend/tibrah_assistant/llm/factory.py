"""
LLM Provider Factory - Creates provider instances and the fallback chain.
"""

import logging
from typing import Any, List, Optional
from .base import LLMProvider
from .gemini_provider import GeminiProvider
from .groq_provider import GroqProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES = {
    "gemini": GeminiProvider,
    "groq": GroqProvider,
}


def create_llm_provider(
    provider: str = "gemini",
    api_key: Optional[str] = "",
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    **kwargs
) -> Optional[LLMProvider]:
    """
    Create an LLM provider instance based on configuration.

    Args:
        provider: Provider name ("gemini" or "groq")
        api_key: API key for the provider
        model: Model name (uses provider default if not specified)
        base_url: Custom base URL (uses provider default if not specified)
        **kwargs: Additional provider-specific parameters

    Returns:
        LLMProvider instance, or None if api_key is not configured
    """
    if provider not in PROVIDER_CLASSES:
        raise ValueError(f"Unsupported LLM provider: {provider}")

    if not api_key:
        return None

    params = {"api_key": api_key}
    if model:
        params["model"] = model
    if base_url:
        params["base_url"] = base_url
    params.update(kwargs)
    return PROVIDER_CLASSES[provider](**params)


def build_provider_chain(config: Any) -> List[LLMProvider]:
    """
    Build the ordered fallback chain from settings.

    Providers without a credential are skipped, so an empty list is a valid
    result: every chat request will then end in a 503.

    Args:
        config: Settings object with <name>_api_key/_model/_base_url fields

    Returns:
        List[LLMProvider]: Configured providers in llm_provider_order
    """
    chain: List[LLMProvider] = []
    for name in config.llm_provider_order:
        provider = create_llm_provider(
            provider=name,
            api_key=getattr(config, f"{name}_api_key", None),
            model=getattr(config, f"{name}_model", None),
            base_url=getattr(config, f"{name}_base_url", None),
            timeout=config.llm_timeout_seconds,
        )
        if provider is None:
            logger.warning(f"LLM provider '{name}' has no API key, skipping")
            continue
        chain.append(provider)
    logger.info(f"LLM fallback chain: {[p.name for p in chain] or 'empty'}")
    return chain
