"""
concierge.core - Foundation Layer
=================================

Building blocks every other Concierge module depends on:

    - config:      OrchestratorConfig, LLMConfig, SessionConfig, load_config
    - enums:       AgentName, ToolName, DispatchPhase, PlanSource, ...
    - exceptions:  ConciergeError hierarchy
    - tools:       Tool parameter schemas and the ToolResult tagged union
    - models:      ExecutionPlan, AgentResult, DelegationStep, TurnResponse
    - state:       ConversationState, InterruptedContext, AgentContext

Dependency Rule:
    core/ depends on NOTHING else in the concierge package.
"""

from concierge.core.config import LLMConfig, OrchestratorConfig, SessionConfig, load_config
from concierge.core.enums import (
    AgentName,
    DispatchPhase,
    FlowName,
    PlanSource,
    ResponseType,
    ToolName,
)
from concierge.core.exceptions import (
    AgentExecutionError,
    ConciergeError,
    ConfigurationError,
    DispatchError,
    NarrationError,
    PersistenceError,
    PlanParseError,
    StateError,
    ToolValidationError,
    UnknownAgentError,
)
from concierge.core.models import (
    AgentResult,
    AwaitingReply,
    CommitReceipt,
    ConsolidationResult,
    DelegationStep,
    ExecutionPlan,
    HistoryTurn,
    InsertResult,
    PlanStep,
    TurnResponse,
)
from concierge.core.state import AgentContext, ConversationState, InterruptedContext
from concierge.core.tools import ToolFailure, ToolResult, ToolSuccess

__all__ = [
    # Config
    "OrchestratorConfig",
    "LLMConfig",
    "SessionConfig",
    "load_config",
    # Enums
    "AgentName",
    "ToolName",
    "ResponseType",
    "FlowName",
    "PlanSource",
    "DispatchPhase",
    # Models
    "HistoryTurn",
    "PlanStep",
    "ExecutionPlan",
    "AwaitingReply",
    "AgentResult",
    "DelegationStep",
    "ConsolidationResult",
    "InsertResult",
    "CommitReceipt",
    "TurnResponse",
    # State
    "ConversationState",
    "InterruptedContext",
    "AgentContext",
    # Tools
    "ToolResult",
    "ToolSuccess",
    "ToolFailure",
    # Exceptions
    "ConciergeError",
    "ConfigurationError",
    "StateError",
    "PlanParseError",
    "UnknownAgentError",
    "ToolValidationError",
    "AgentExecutionError",
    "PersistenceError",
    "NarrationError",
    "DispatchError",
]
