"""
concierge.integrations.llm.base - Abstract LLM Provider Interface
===================================================================

The contract every LLM provider implements. Three Concierge components
talk to an LLM, always through this interface:

    ┌──────────────┐  decomposition prompt   ┌──────────────────┐
    │ Planner      │ ──────────────────────→ │                  │
    ├──────────────┤  tool-selection prompt  │ BaseLLMProvider  │
    │ Agents       │ ──────────────────────→ │   (abstract)     │
    ├──────────────┤  narration prompt       │                  │
    │ Consolidator │ ──────────────────────→ │                  │
    └──────────────┘ ←──── LLMResponse ───── └────────┬─────────┘
                                                      │
                                              ┌───────┴───────┐
                                              │ MockLLMProvider│
                                              └───────────────┘

Every LLM answer is treated as untrusted text: callers parse and validate
it, and fall back to deterministic behaviour when it is unusable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from concierge.core.config import LLMConfig


# =============================================================================
# LLM Response Model
# =============================================================================
class LLMUsage(BaseModel):
    """Token usage for one LLM call."""

    prompt_tokens: int = Field(default=0, ge=0, description="Tokens in the input prompt")
    completion_tokens: int = Field(default=0, ge=0, description="Tokens in the output")
    total_tokens: int = Field(default=0, ge=0, description="Total tokens consumed")


class LLMResponse(BaseModel):
    """Standardized response from any LLM provider.

    Attributes:
        content: The generated text.
        model: Model that produced it.
        usage: Token counts.
        finish_reason: "stop", "length" or "error".
        metadata: Provider-specific extras.
        created_at: When the response was generated (UTC).
    """

    content: str = Field(description="The generated text content from the LLM")
    model: str = Field(description="Model identifier that produced this response")
    usage: LLMUsage = Field(default_factory=LLMUsage, description="Token usage")
    finish_reason: str = Field(default="stop", description="Why generation stopped")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Provider extras")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Response creation timestamp (UTC)",
    )


# =============================================================================
# Abstract Base LLM Provider
# =============================================================================
class BaseLLMProvider(ABC):
    """Abstract base class for all LLM providers.

    Subclasses implement ``generate`` and ``generate_with_system``; the base
    class stores the configuration and exposes it through properties.
    """

    def __init__(self, config: LLMConfig) -> None:
        self._config = config

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def provider_name(self) -> str:
        return self._config.provider

    @property
    def model(self) -> str:
        return self._config.model

    @property
    def temperature(self) -> float:
        return self._config.temperature

    @property
    def max_tokens(self) -> int:
        return self._config.max_tokens

    @property
    def config(self) -> LLMConfig:
        return self._config

    # =========================================================================
    # Abstract Methods (Subclasses MUST implement)
    # =========================================================================

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        stop_sequences: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate text from a single prompt.

        Args:
            prompt: The input text prompt.
            temperature: Override the configured temperature for this call.
            max_tokens: Override the configured max_tokens for this call.
            stop_sequences: Strings that stop generation.
            **kwargs: Provider-specific keyword arguments.

        Returns:
            LLMResponse with the generated content.

        Raises:
            Exception: If the provider call fails (provider-specific).
        """
        ...

    @abstractmethod
    async def generate_with_system(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        stop_sequences: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate text with a separate system prompt (role and rules)."""
        ...

    # =========================================================================
    # Optional Methods
    # =========================================================================

    async def validate(self) -> bool:
        """Return True if the provider is ready to serve calls."""
        return True

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"provider={self.provider_name!r}, "
            f"model={self.model!r})"
        )
