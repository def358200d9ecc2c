"""
concierge.core.config - Configuration Management
==================================================

This module provides the configuration system for Concierge. Configuration
can be loaded from multiple sources with the following priority (highest first):

    1. Explicit constructor arguments
    2. Environment variables (prefixed with CONCIERGE_)
    3. YAML configuration file (concierge.yaml)
    4. Default values defined in the models below

Architecture Context:
    Configuration flows DOWN through the system. The top-level
    OrchestratorConfig is created once and handed to every component:

        OrchestratorConfig
            ├── LLMConfig       → LLM Provider → Planner, Narrator, Agents
            ├── SessionConfig   → Session Store (TTL, capacity)
            └── (turn settings) → Dispatcher, Adapter, Committer timeouts

Usage:
    # Load from environment variables:
    config = OrchestratorConfig()

    # Load from YAML file:
    config = load_config("concierge.yaml")

    # Explicit overrides:
    config = OrchestratorConfig(max_delegation_steps=2, log_level="DEBUG")

Environment Variables:
    CONCIERGE_LOG_LEVEL=DEBUG
    CONCIERGE_PLANNER_TIMEOUT_SECONDS=10
    CONCIERGE_LLM__PROVIDER=mock
    CONCIERGE_LLM__MODEL=gemini-2.0-flash
    CONCIERGE_SESSION__TTL_SECONDS=1800
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


# =============================================================================
# LLM Configuration
# =============================================================================
# The planner, the narrator and each agent's tool selector all talk to the
# same provider through the integrations/llm abstraction.
# =============================================================================
class LLMConfig(BaseModel):
    """Configuration for the Large Language Model provider.

    Supported Providers:
        - "mock": Mock provider for testing (returns configurable responses)

    Attributes:
        provider: Which LLM service to use. Maps to a concrete provider in
            integrations/llm/factory.py.
        model: The specific model to use within the provider.
        api_key: API authentication key. Optional because the mock provider
            doesn't need one.
        temperature: Sampling temperature. Plans and tool selections want
            low values.
        max_tokens: Maximum number of tokens per response.
        api_base_url: Custom API endpoint URL (proxies, self-hosted models).
    """

    provider: str = Field(
        default="mock",
        description="LLM provider name (currently only 'mock' is bundled)",
    )
    model: str = Field(
        default="gemini-2.0-flash",
        description="Model identifier within the provider",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key for authentication (None for mock provider)",
    )
    temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=2.0,
        description="LLM temperature: 0.0=deterministic, 1.0=creative",
    )
    max_tokens: int = Field(
        default=1024,
        ge=1,
        le=128000,
        description="Maximum tokens per LLM response",
    )
    api_base_url: Optional[str] = Field(
        default=None,
        description="Custom API base URL (for proxies or self-hosted models)",
    )


# =============================================================================
# Session Configuration
# =============================================================================
# Sessions are evicted after a period of inactivity and when the store is
# full (least recently updated first).
# =============================================================================
class SessionConfig(BaseModel):
    """Configuration for the conversation session store.

    Attributes:
        ttl_seconds: Idle time after which a session's ConversationState is
            discarded. 30 minutes by default.
        max_active_sessions: Capacity of the in-memory store. When full,
            the least recently updated session is evicted.
    """

    ttl_seconds: int = Field(
        default=30 * 60,
        ge=1,
        description="Idle seconds before a session is evicted",
    )
    max_active_sessions: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of sessions held in memory",
    )


# =============================================================================
# Main Configuration
# =============================================================================
# Environment Variable Mapping:
#   CONCIERGE_LOG_LEVEL             → config.log_level
#   CONCIERGE_MAX_DELEGATION_STEPS  → config.max_delegation_steps
#   CONCIERGE_LLM__PROVIDER         → config.llm.provider
#   CONCIERGE_SESSION__TTL_SECONDS  → config.session.ttl_seconds
# =============================================================================
class OrchestratorConfig(BaseSettings):
    """Top-level configuration for the Concierge orchestrator.

    Attributes:
        environment: Deployment environment.
        log_level: Logging level for structlog and the stdlib loggers.
        restaurant_name: Name used in narration prompts and in the
            reservation confirmation payload.
        default_venue_id: Venue used when a turn arrives without one.
        architecture_label: Tag reported in every turn's orchestrator
            metadata so clients can tell which dispatcher answered.
        max_delegation_steps: Upper bound on agent executions per turn
            (plan steps plus hand-offs). Guards against hand-off cycles.
        history_window: Number of recent history turns shown to the planner
            and to each agent's tool selector.
        context_history_limit: Number of history turns passed to the
            narrator.
        planner_timeout_seconds: Timeout for the planning LLM call.
        narrator_timeout_seconds: Timeout for the narration LLM call.
        agent_timeout_seconds: Timeout for one whole agent execution.
        selector_timeout_seconds: Timeout for an agent's tool-selection call.
        tool_timeout_seconds: Timeout for one data-source tool call.
        persistence_timeout_seconds: Timeout for the reservation insert.
        classifier_rules_path: Optional YAML file overriding the default
            intent/resume classifier rules.
        classifier_mode: "rule" (keyword rules) or "llm" (LLM answers,
            rules when the answer is unusable).
        llm: LLM provider configuration.
        session: Session store configuration.

    Example:
        >>> config = OrchestratorConfig(
        ...     environment="dev",
        ...     max_delegation_steps=3,
        ...     llm=LLMConfig(provider="mock"),
        ... )
    """

    # -------------------------------------------------------------------------
    # General Settings
    # -------------------------------------------------------------------------
    environment: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Deployment environment (affects defaults and verbosity)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    restaurant_name: str = Field(
        default="Lofaki Taverna",
        description="Restaurant name used in prompts and confirmations",
    )
    default_venue_id: int = Field(
        default=1,
        ge=1,
        description="Venue id used when a turn does not specify one",
    )
    architecture_label: str = Field(
        default="session-aware-hybrid-v3",
        description="Architecture tag reported in orchestrator metadata",
    )

    # -------------------------------------------------------------------------
    # Dispatch Settings
    # -------------------------------------------------------------------------
    max_delegation_steps: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum agent executions (plan steps + hand-offs) per turn",
    )
    history_window: int = Field(
        default=3,
        ge=0,
        le=50,
        description="Recent history turns shown to the planner and selectors",
    )
    context_history_limit: int = Field(
        default=10,
        ge=0,
        le=100,
        description="History turns passed to the narrator",
    )

    # -------------------------------------------------------------------------
    # Timeouts (seconds)
    # -------------------------------------------------------------------------
    planner_timeout_seconds: float = Field(default=15.0, gt=0)
    narrator_timeout_seconds: float = Field(default=20.0, gt=0)
    agent_timeout_seconds: float = Field(default=30.0, gt=0)
    selector_timeout_seconds: float = Field(default=15.0, gt=0)
    tool_timeout_seconds: float = Field(default=10.0, gt=0)
    persistence_timeout_seconds: float = Field(default=10.0, gt=0)

    # -------------------------------------------------------------------------
    # Commits
    # -------------------------------------------------------------------------
    idempotency_cache_size: int = Field(
        default=1000,
        ge=1,
        description="Most recent commit receipts kept for idempotent replays",
    )

    # -------------------------------------------------------------------------
    # Classifier
    # -------------------------------------------------------------------------
    classifier_rules_path: Optional[str] = Field(
        default=None,
        description="YAML file overriding the default classifier rules",
    )
    classifier_mode: Literal["rule", "llm"] = Field(
        default="rule",
        description="Resume/topic-switch detection: keyword rules or LLM with rule fallback",
    )

    # -------------------------------------------------------------------------
    # Nested Configurations
    # -------------------------------------------------------------------------
    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="LLM provider configuration",
    )
    session: SessionConfig = Field(
        default_factory=SessionConfig,
        description="Session store configuration",
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------
    #   - env_prefix: All env vars start with "CONCIERGE_"
    #   - env_nested_delimiter: "__" reaches into nested configs
    #     (e.g., CONCIERGE_LLM__MODEL maps to config.llm.model)
    # -------------------------------------------------------------------------
    model_config = {
        "env_prefix": "CONCIERGE_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
    }


# =============================================================================
# Configuration Loader
# =============================================================================
def load_config(path: Optional[str] = None) -> OrchestratorConfig:
    """Load Concierge configuration from a YAML file and/or environment variables.

    Args:
        path: Path to a YAML configuration file. If None, looks for
            'concierge.yaml' in the current directory. If that doesn't
            exist either, uses pure defaults + environment variables.

    Returns:
        A fully validated OrchestratorConfig instance.

    Raises:
        FileNotFoundError: If an explicit path is provided but doesn't exist.
        pydantic.ValidationError: If the YAML contains invalid values.
    """
    if path is None:
        default_path = Path("concierge.yaml")
        if default_path.exists():
            path = str(default_path)

    yaml_data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {path}. "
                f"Create one or use CONCIERGE_* environment variables."
            )

        with open(config_path) as f:
            raw_data = yaml.safe_load(f)
            if isinstance(raw_data, dict):
                yaml_data = raw_data

    # YAML values are constructor args; BaseSettings still reads the env.
    return OrchestratorConfig(**yaml_data)


def get_default_config() -> OrchestratorConfig:
    """Create an OrchestratorConfig with all defaults (plus any env overrides)."""
    return OrchestratorConfig()
