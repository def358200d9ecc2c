"""
Concierge - Restaurant Conversational Multi-Agent Orchestrator
================================================================

Concierge routes each guest message, inside an ongoing conversation, to
one or more specialized restaurant agents, coordinates hand-offs between
them, merges their results into one reply and keeps enough session state
to resume an interrupted booking later.

    guest message → Dispatcher → Planner → Agents → Committer / Narrator → reply

Architecture Layers (top to bottom):
    1. Orchestration Layer  - Dispatcher, Planner, Classifier, Session Store
    2. Agent Layer          - Registry + six restaurant agents and their tools
    3. Infrastructure Layer - Reservation Store
    4. Integration Layer    - LLM Providers, Restaurant Data Source

Quick Start:
    >>> from concierge import ConciergeAI
    >>> async with ConciergeAI() as concierge:
    ...     reply = await concierge.process_message("Hello", session_id="abc")
"""

# =============================================================================
# Package Version
# =============================================================================
__version__ = "0.1.0"

# =============================================================================
# Package-Level Exports
# =============================================================================
# The ConciergeAI facade is the main entry point. For specific components,
# import from submodules directly:
#   from concierge.core.config import OrchestratorConfig
#   from concierge.core.enums import AgentName
#   from concierge.core.models import TurnResponse
# =============================================================================
from concierge.facade import ConciergeAI

__all__ = ["ConciergeAI", "__version__"]
