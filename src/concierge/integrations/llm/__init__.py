"""
concierge.integrations.llm - Large Language Model Providers
=============================================================

The planner, the agents' tool selectors and the narrator call the LLM
through BaseLLMProvider, so the backend can be swapped without touching
them.

Available Providers:
    - BaseLLMProvider: Abstract base class defining the LLM contract.
    - MockLLMProvider: Queued and prompt-aware mock responses (for testing).
"""

from concierge.integrations.llm.base import BaseLLMProvider, LLMResponse, LLMUsage
from concierge.integrations.llm.mock import MockLLMProvider
from concierge.integrations.llm.factory import create_llm_provider

__all__ = [
    "BaseLLMProvider",
    "LLMResponse",
    "LLMUsage",
    "MockLLMProvider",
    "create_llm_provider",
]
