"""
concierge.orchestration - Turn Orchestration Layer
====================================================

Everything that happens between "a guest said something" and "here is the
reply":

    SessionStore        per-session ConversationState (TTL, capacity)
    Planner             utterance → ExecutionPlan (LLM, heuristic fallback)
    Classifier          intent / resume / topic-switch questions
    InterruptManager    snapshot and restore interrupted flows
    Dispatcher          per-turn state machine, bounded delegation
    AgentExecutionAdapter  uniform, never-raising agent calls
    HandoffResolver     extend or terminate the delegation chain
    Consolidator        narrate tool results (template fallback)
    ReservationCommitter  persist finished bookings (non-fatal failures)
"""

from concierge.orchestration.classifier import (
    Classifier,
    ClassifierRules,
    IntentRule,
    LLMClassifier,
    RuleBasedClassifier,
    create_classifier,
)
from concierge.orchestration.committer import CommitOutcome, ReservationCommitter
from concierge.orchestration.consolidator import Consolidator
from concierge.orchestration.dispatcher import TRANSITIONS, Dispatcher, DispatchStateMachine
from concierge.orchestration.execution_adapter import AgentExecutionAdapter
from concierge.orchestration.handoff_resolver import HandoffAction, HandoffDecision, HandoffResolver
from concierge.orchestration.interrupt_manager import RESUME_SUBTASK, InterruptManager
from concierge.orchestration.planner import Planner, heuristic_plan
from concierge.orchestration.session_store import InMemorySessionStore, SessionStore

__all__ = [
    "AgentExecutionAdapter",
    "Classifier",
    "ClassifierRules",
    "CommitOutcome",
    "Consolidator",
    "DispatchStateMachine",
    "Dispatcher",
    "HandoffAction",
    "HandoffDecision",
    "HandoffResolver",
    "InMemorySessionStore",
    "IntentRule",
    "InterruptManager",
    "LLMClassifier",
    "Planner",
    "RESUME_SUBTASK",
    "ReservationCommitter",
    "RuleBasedClassifier",
    "SessionStore",
    "TRANSITIONS",
    "create_classifier",
    "heuristic_plan",
]
