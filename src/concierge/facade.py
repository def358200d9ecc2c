"""
concierge.facade - ConciergeAI Top-Level Facade
=================================================

The single entry point that wires every layer together and exposes the
conversational API.

Architecture Context:

    ┌──────────────────────────────────────────────────┐
    │              ConciergeAI (Facade)                 │
    │                                                   │
    │  ┌─────────────────────────────────────────────┐ │
    │  │         Orchestration Layer                  │ │
    │  │  Dispatcher, Planner, Classifier,            │ │
    │  │  SessionStore, Consolidator, Committer       │ │
    │  └─────────────────────┬───────────────────────┘ │
    │                        │                          │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │            Agent Layer                       │ │
    │  │  Registry, six restaurant agents, tools      │ │
    │  └─────────────────────┬───────────────────────┘ │
    │                        │                          │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │         Infrastructure Layer                 │ │
    │  │  ReservationStore                            │ │
    │  └─────────────────────┬───────────────────────┘ │
    │                        │                          │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │         Integration Layer                    │ │
    │  │  LLM Provider, Restaurant Data Source        │ │
    │  └─────────────────────────────────────────────┘ │
    └──────────────────────────────────────────────────┘

Usage:
    >>> from concierge import ConciergeAI
    >>>
    >>> async with ConciergeAI() as concierge:
    ...     reply = await concierge.process_message("Hello", session_id="abc")
    ...     print(reply.to_dict()["response"])
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

import structlog

from concierge.agents import AgentRegistry, ToolExecutor, build_agents
from concierge.agents.base import BaseAgent
from concierge.core.config import OrchestratorConfig
from concierge.core.enums import AgentName, ResponseType
from concierge.core.models import HistoryTurn, TurnResponse
from concierge.core.state import ConversationState
from concierge.infrastructure.reservation_store import InMemoryReservationStore, ReservationStore
from concierge.integrations.llm.base import BaseLLMProvider
from concierge.integrations.llm.factory import create_llm_provider
from concierge.integrations.restaurant import InMemoryRestaurantDataSource, RestaurantDataSource
from concierge.orchestration.classifier import Classifier, create_classifier
from concierge.orchestration.committer import ReservationCommitter
from concierge.orchestration.consolidator import Consolidator
from concierge.orchestration.dispatcher import Dispatcher
from concierge.orchestration.execution_adapter import AgentExecutionAdapter
from concierge.orchestration.handoff_resolver import HandoffResolver
from concierge.orchestration.interrupt_manager import InterruptManager
from concierge.orchestration.planner import Planner
from concierge.orchestration.session_store import InMemorySessionStore, SessionStore


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()

TROUBLE_MESSAGE = (
    "I apologize, but I'm having trouble processing your request right now. Please try again."
)


def configure_logging(level: str = "INFO") -> None:
    """Filter structlog and stdlib concierge loggers below ``level``."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(numeric))
    logging.getLogger("concierge").setLevel(numeric)


class ConciergeAI:
    """Top-level facade for the restaurant concierge.

    Every collaborator can be injected through keyword arguments; anything
    omitted gets the in-memory/mock default.

    Lifecycle:
        1. ``ConciergeAI(config, ...)`` - Instantiate and wire components
        2. ``await initialize()``      - Connect the session store
        3. ``await process_message()`` - Handle guest utterances
        4. ``await shutdown()``        - Release resources

    Attributes:
        _config: Orchestrator configuration.
        _llm: Provider used by the planner, selectors and narrator.
        _data_source: Restaurant business data.
        _reservation_store: Where finished bookings are persisted.
        _session_store: Per-session ConversationState storage.
        _registry: Agent registry.
        _agents: Agent instances keyed by name.
        _dispatcher: Per-turn orchestration core.
        _initialized: Whether initialize() has been called.

    Example:
        >>> concierge = ConciergeAI(llm_provider=MockLLMProvider())
        >>> await concierge.initialize()
        >>> reply = await concierge.process_message("Hello")
        >>> reply.type
        <ResponseType.MESSAGE: 'message'>
        >>> await concierge.shutdown()
    """

    def __init__(
        self,
        config: Optional[OrchestratorConfig] = None,
        *,
        llm_provider: Optional[BaseLLMProvider] = None,
        data_source: Optional[RestaurantDataSource] = None,
        reservation_store: Optional[ReservationStore] = None,
        session_store: Optional[SessionStore] = None,
        classifier: Optional[Classifier] = None,
        registry: Optional[AgentRegistry] = None,
    ) -> None:
        # --- Configuration ---
        self._config = config or OrchestratorConfig()

        # --- Integration Layer ---
        self._llm = llm_provider or create_llm_provider(self._config.llm)
        self._data_source = data_source or InMemoryRestaurantDataSource()

        # --- Infrastructure Layer ---
        self._reservation_store = reservation_store or InMemoryReservationStore()

        # --- Agent Layer ---
        self._registry = registry or AgentRegistry()
        self._tool_executor = ToolExecutor(
            self._data_source, timeout_seconds=self._config.tool_timeout_seconds
        )
        self._agents = build_agents(self._registry, self._llm, self._tool_executor, self._config)

        # --- Orchestration Layer ---
        self._session_store = session_store or InMemorySessionStore(
            registry=self._registry,
            ttl_seconds=self._config.session.ttl_seconds,
            max_active_sessions=self._config.session.max_active_sessions,
        )
        self._classifier = classifier or create_classifier(
            self._config.classifier_mode,
            rules_path=self._config.classifier_rules_path,
            llm_provider=self._llm,
            timeout_seconds=self._config.planner_timeout_seconds,
        )
        self._dispatcher = Dispatcher(
            session_store=self._session_store,
            planner=Planner(self._llm, self._registry, self._config),
            adapter=AgentExecutionAdapter(
                self._agents, self._registry, timeout_seconds=self._config.agent_timeout_seconds
            ),
            handoff_resolver=HandoffResolver(
                self._registry, max_steps=self._config.max_delegation_steps
            ),
            interrupt_manager=InterruptManager(self._classifier),
            consolidator=Consolidator(self._llm, self._config),
            committer=ReservationCommitter(
                self._reservation_store,
                timeout_seconds=self._config.persistence_timeout_seconds,
                max_receipts=self._config.idempotency_cache_size,
            ),
            config=self._config,
        )

        # --- Tracking ---
        self._initialized = False
        self._logger = logger.bind(component="concierge_ai")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    @property
    def registry(self) -> AgentRegistry:
        return self._registry

    @property
    def agents(self) -> dict[AgentName, BaseAgent]:
        return dict(self._agents)

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def session_store(self) -> SessionStore:
        return self._session_store

    @property
    def reservation_store(self) -> ReservationStore:
        return self._reservation_store

    @property
    def data_source(self) -> RestaurantDataSource:
        return self._data_source

    @property
    def llm_provider(self) -> BaseLLMProvider:
        return self._llm

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def initialize(self) -> None:
        """Connect the session store. Idempotent."""
        if self._initialized:
            self._logger.debug("concierge_already_initialized")
            return

        configure_logging(self._config.log_level)
        await self._session_store.connect()

        self._initialized = True
        self._logger.info(
            "concierge_initialized",
            agents=[name.value for name in self._agents],
            llm_provider=self._llm.provider_name,
        )

    async def shutdown(self) -> None:
        """Disconnect the session store. Idempotent."""
        if not self._initialized:
            self._logger.debug("concierge_not_initialized_skipping_shutdown")
            return

        await self._session_store.disconnect()
        self._initialized = False
        self._logger.info("concierge_shutdown_complete")

    async def __aenter__(self) -> ConciergeAI:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.shutdown()

    # =========================================================================
    # Conversation API
    # =========================================================================

    async def process_message(
        self,
        message: str,
        history: Optional[list[Union[HistoryTurn, dict[str, Any]]]] = None,
        venue_id: Optional[int] = None,
        session_id: Optional[str] = None,
    ) -> TurnResponse:
        """Handle one guest utterance.

        Args:
            message: What the guest just said.
            history: Earlier turns as HistoryTurn or ``{"sender", "text"}``.
            venue_id: Restaurant id; defaults to ``config.default_venue_id``.
            session_id: Conversation key; None uses the "default" session.

        Returns:
            TurnResponse. Never raises: any unexpected failure produces an
            apology with ``orchestrator.error`` set.
        """
        try:
            if not self._initialized:
                await self.initialize()

            turns = [
                turn if isinstance(turn, HistoryTurn) else HistoryTurn.model_validate(turn)
                for turn in (history or [])
            ]
            effective_venue = venue_id or self._config.default_venue_id
            state = await self._session_store.get(session_id)

            self._logger.info(
                "message_received",
                session_id=state.session_id,
                venue_id=effective_venue,
                history_turns=len(turns),
            )
            return await self._dispatcher.dispatch(message, turns, effective_venue, state)

        except Exception as e:
            self._logger.exception("process_message_failed", session_id=session_id, error=str(e))
            return TurnResponse(
                response=TROUBLE_MESSAGE,
                type=ResponseType.MESSAGE,
                orchestrator={"error": str(e), "architecture": self._config.architecture_label},
            )

    async def reset_conversation(self, session_id: Optional[str] = None) -> ConversationState:
        """Start a new conversation, keeping any interrupted-flow snapshot."""
        state = await self._session_store.reset(session_id)
        self._logger.info("conversation_reset", session_id=state.session_id)
        return state

    async def get_conversation_state(self, session_id: Optional[str] = None) -> ConversationState:
        """Return the session's ConversationState (created if missing)."""
        return await self._session_store.get(session_id)

    def __repr__(self) -> str:
        return (
            f"ConciergeAI(initialized={self._initialized}, "
            f"agents={len(self._agents)}, "
            f"llm={self._llm.provider_name!r})"
        )
