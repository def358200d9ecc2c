"""
concierge.orchestration.session_store - Conversation State Store
==================================================================

Session-keyed storage for ConversationState. Every session owns its own
state object; nothing is shared between sessions.

Architecture:

    ┌──────────────┐   get(session_id)   ┌────────────────────┐
    │  Dispatcher  │ ─────────────────→  │                    │
    │              │ ←─────────────────  │   Session Store    │
    │              │  ConversationState  │                    │
    │              │ ─────────────────→  │   ttl eviction     │
    └──────────────┘      save(state)    │   capacity (LRU)   │
                                         └────────────────────┘

Key Schema:
    session_id → ConversationState   (None maps to "default")

Expiry:
    - Sessions not updated for ``ttl_seconds`` are evicted on access.
    - When ``max_active_sessions`` is reached, the least recently updated
      session is evicted before a new one is created.

Implementations:
    - SessionStore (ABC):        Abstract interface
    - InMemorySessionStore:      Dict-based for dev/testing
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional

from concierge.agents.registry import AgentRegistry
from concierge.core.exceptions import StateError
from concierge.core.state import ConversationState

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"


def _session_key(session_id: Optional[str]) -> str:
    return session_id or DEFAULT_SESSION_ID


# =============================================================================
# Abstract Base Class: SessionStore
# =============================================================================
class SessionStore(ABC):
    """Abstract base class for conversation state storage.

    Example:
        >>> state = await store.get("abc")
        >>> state.turn_count += 1
        >>> await store.save(state)
    """

    # -------------------------------------------------------------------------
    # Connection Lifecycle
    # -------------------------------------------------------------------------
    @abstractmethod
    async def connect(self) -> None:
        """Prepare the storage backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the storage backend."""

    # -------------------------------------------------------------------------
    # Session Operations
    # -------------------------------------------------------------------------
    @abstractmethod
    async def get(self, session_id: Optional[str]) -> ConversationState:
        """Return the session's state, creating a fresh one on first use.

        Args:
            session_id: Session key. None maps to ``"default"``.
        """

    @abstractmethod
    async def save(self, state: ConversationState) -> None:
        """Store ``state`` under its session id.

        Raises:
            StateError: If the state is not valid for this store.
        """

    @abstractmethod
    async def reset(self, session_id: Optional[str]) -> ConversationState:
        """Clear a session, keeping only its interrupted-flow snapshot."""

    @abstractmethod
    async def delete(self, session_id: Optional[str]) -> bool:
        """Remove a session entirely.

        Returns:
            True if the session existed.
        """

    @abstractmethod
    async def evict_expired(self) -> int:
        """Drop sessions older than the TTL.

        Returns:
            Number of sessions evicted.
        """


# =============================================================================
# InMemorySessionStore Implementation
# =============================================================================
# Key Data Structures:
#   _sessions: dict[session_id, ConversationState]
# =============================================================================
class InMemorySessionStore(SessionStore):
    """In-memory session store for development and testing.

    Data is lost when the process ends.

    Example:
        >>> store = InMemorySessionStore(ttl_seconds=1800, max_active_sessions=1000)
        >>> await store.connect()
        >>> state = await store.get(None)
        >>> state.session_id
        'default'
    """

    def __init__(
        self,
        registry: Optional[AgentRegistry] = None,
        ttl_seconds: int = 1800,
        max_active_sessions: int = 1000,
    ) -> None:
        self._registry = registry
        self._ttl = timedelta(seconds=ttl_seconds)
        self._max_sessions = max_active_sessions
        self._sessions: dict[str, ConversationState] = {}
        self._connected: bool = False

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    # -------------------------------------------------------------------------
    # Connection Lifecycle
    # -------------------------------------------------------------------------
    async def connect(self) -> None:
        """Mark the store as connected."""
        self._connected = True
        logger.info("InMemorySessionStore connected")

    async def disconnect(self) -> None:
        """Clear all sessions and mark as disconnected."""
        self._sessions.clear()
        self._connected = False
        logger.info("InMemorySessionStore disconnected")

    # -------------------------------------------------------------------------
    # Session Operations
    # -------------------------------------------------------------------------
    async def get(self, session_id: Optional[str]) -> ConversationState:
        key = _session_key(session_id)
        await self.evict_expired()

        state = self._sessions.get(key)
        if state is None:
            if len(self._sessions) >= self._max_sessions:
                self._evict_least_recent()
            state = ConversationState(session_id=key)
            self._sessions[key] = state
            logger.debug("Created session state: %s", key)
        return state

    async def save(self, state: ConversationState) -> None:
        """Validate and store the state (last-write-wins).

        Raises:
            StateError: If ``next_agent`` is not a registered agent.
        """
        if (
            state.next_agent is not None
            and self._registry is not None
            and not self._registry.is_registered(state.next_agent)
        ):
            raise StateError(
                f"next_agent '{state.next_agent.value}' is not a registered agent",
                session_id=state.session_id,
            )
        state.touch()
        self._sessions[state.session_id] = state
        logger.debug(
            "Saved session state: %s (active_agent=%s, awaiting=%s)",
            state.session_id,
            state.active_agent,
            state.is_awaiting_user_response,
        )

    async def reset(self, session_id: Optional[str]) -> ConversationState:
        state = await self.get(session_id)
        state.reset()
        logger.info("Reset session state: %s", state.session_id)
        return state

    async def delete(self, session_id: Optional[str]) -> bool:
        key = _session_key(session_id)
        if key in self._sessions:
            del self._sessions[key]
            logger.debug("Deleted session state: %s", key)
            return True
        return False

    async def evict_expired(self) -> int:
        cutoff = datetime.now(timezone.utc) - self._ttl
        expired = [key for key, state in self._sessions.items() if state.updated_at < cutoff]
        for key in expired:
            del self._sessions[key]
        if expired:
            logger.info("Evicted %s expired session(s)", len(expired))
        return len(expired)

    def _evict_least_recent(self) -> None:
        oldest = min(self._sessions.values(), key=lambda s: s.updated_at)
        del self._sessions[oldest.session_id]
        logger.info("Session capacity reached, evicted: %s", oldest.session_id)
