"""
concierge.integrations.llm.factory - LLM Provider Factory
===========================================================

Maps ``LLMConfig.provider`` to a concrete provider.

Usage:
    >>> provider = create_llm_provider(LLMConfig(provider="mock"))
    >>> type(provider)  # MockLLMProvider
"""

from __future__ import annotations

from concierge.core.config import LLMConfig
from concierge.core.exceptions import ConfigurationError
from concierge.integrations.llm.base import BaseLLMProvider


def create_llm_provider(config: LLMConfig) -> BaseLLMProvider:
    """Create an LLM provider instance based on configuration.

    Args:
        config: LLM configuration with provider name, model, API key, etc.

    Returns:
        A concrete BaseLLMProvider instance.

    Raises:
        ConfigurationError: If the provider name is not recognized.
    """
    provider_name = config.provider.lower()

    if provider_name == "mock":
        from concierge.integrations.llm.mock import MockLLMProvider
        return MockLLMProvider(config)

    raise ConfigurationError(
        message=f"Unknown LLM provider: '{provider_name}'. Available providers: 'mock'.",
        error_code="UNKNOWN_LLM_PROVIDER",
        details={"provider": provider_name},
    )
