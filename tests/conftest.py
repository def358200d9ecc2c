"""
Shared Test Fixtures for Concierge
====================================

This module provides reusable pytest fixtures used across the entire
test suite. Fixtures are organized by layer:

    1. Configuration fixtures
    2. Integration fixtures (LLM provider, restaurant data)
    3. Infrastructure fixtures (ReservationStore)
    4. Agent fixtures (registry, tool executor, agents)
    5. Orchestration fixtures (session store, classifier, dispatcher parts)
    6. Facade fixtures (ConciergeAI)
"""

from __future__ import annotations

import pytest

from concierge.agents import AgentRegistry, ToolExecutor, build_agents
from concierge.core.config import OrchestratorConfig
from concierge.core.state import AgentContext, ConversationState
from concierge.facade import ConciergeAI
from concierge.infrastructure.reservation_store import InMemoryReservationStore
from concierge.integrations.llm.mock import MockLLMProvider
from concierge.integrations.restaurant import InMemoryRestaurantDataSource
from concierge.orchestration.classifier import RuleBasedClassifier
from concierge.orchestration.session_store import InMemorySessionStore


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def config():
    """Concierge configuration with defaults."""
    return OrchestratorConfig()


# =============================================================================
# Integrations
# =============================================================================

@pytest.fixture
def mock_llm_provider():
    """Fresh MockLLMProvider with no queued responses."""
    return MockLLMProvider()


@pytest.fixture
def data_source():
    """Seeded in-memory restaurant data (venue 1)."""
    return InMemoryRestaurantDataSource()


# =============================================================================
# Infrastructure
# =============================================================================

@pytest.fixture
def reservation_store():
    """Fresh InMemoryReservationStore."""
    return InMemoryReservationStore()


# =============================================================================
# Agents
# =============================================================================

@pytest.fixture
def registry():
    """AgentRegistry with the six default agents."""
    return AgentRegistry()


@pytest.fixture
def tool_executor(data_source):
    """ToolExecutor backed by the seeded data source."""
    return ToolExecutor(data_source)


@pytest.fixture
def agents(registry, mock_llm_provider, tool_executor, config):
    """One instance of every registered agent, sharing the mock provider."""
    return build_agents(registry, mock_llm_provider, tool_executor, config)


@pytest.fixture
def agent_context():
    """Empty AgentContext for a fresh session."""
    return AgentContext(orchestrator_state=ConversationState(session_id="test"))


# =============================================================================
# Orchestration
# =============================================================================

@pytest.fixture
def session_store(registry):
    """Fresh InMemorySessionStore validating against the registry."""
    return InMemorySessionStore(registry=registry)


@pytest.fixture
def classifier():
    """Rule-based classifier with the default rules."""
    return RuleBasedClassifier()


# =============================================================================
# Facade
# =============================================================================

@pytest.fixture
def concierge(config, mock_llm_provider, data_source, reservation_store):
    """ConciergeAI wired to in-memory collaborators and the mock provider."""
    return ConciergeAI(
        config,
        llm_provider=mock_llm_provider,
        data_source=data_source,
        reservation_store=reservation_store,
    )
