"""
concierge.core.enums - Type-Safe Enumerations
===============================================

This module defines the enumeration types used throughout Concierge.

All enums inherit from both `str` and `Enum`, which means:
    - They serialize to strings in JSON/YAML (Pydantic-friendly)
    - They can be compared with plain strings:
      AgentName.MENU_PRICING == "MenuPricingAgent"
    - Planner output (plain strings) can be parsed with AgentName(value)

Architecture Mapping:

    ┌─────────────────────────────────────────────────────────────────┐
    │  ORCHESTRATION LAYER                                            │
    │    DispatchPhase: the per-turn dispatch state machine           │
    │    PlanSource:    where an ExecutionPlan came from              │
    ├─────────────────────────────────────────────────────────────────┤
    │  AGENT LAYER                                                    │
    │    AgentName: the 6 specialized restaurant agents               │
    │    ToolName:  the tools agents are allowed to invoke            │
    │    FlowName:  multi-turn flows (booking)                        │
    ├─────────────────────────────────────────────────────────────────┤
    │  RESPONSE                                                       │
    │    ResponseType: "message" or "redirect"                        │
    └─────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


# =============================================================================
# Agent Name Enumeration
# =============================================================================
# The values are the wire names the planner sees and answers with, so they
# are CamelCase strings rather than snake_case identifiers.
#
#   TABLE_AVAILABILITY → agents/booking/table_availability_agent.py
#   RESERVATION        → agents/booking/reservation_agent.py
#   MENU_PRICING       → agents/dining/menu_pricing_agent.py
#   CELEBRATION        → agents/dining/celebration_agent.py
#   RESTAURANT_INFO    → agents/guest_services/restaurant_info_agent.py
#   SUPPORT_CONTACT    → agents/guest_services/support_contact_agent.py
# =============================================================================
class AgentName(str, Enum):
    """Names of the specialized agents known to the registry.

    Usage:
        >>> AgentName("MenuPricingAgent")
        <AgentName.MENU_PRICING: 'MenuPricingAgent'>
        >>> AgentName.MENU_PRICING == "MenuPricingAgent"
        True
    """

    # --- Booking ---
    TABLE_AVAILABILITY = "TableAvailabilityAgent"   # Dates, times, capacity, table types
    RESERVATION = "ReservationAgent"                 # Final booking creation

    # --- Dining ---
    MENU_PRICING = "MenuPricingAgent"                # Menu items, dietary needs, prices
    CELEBRATION = "CelebrationAgent"                 # Birthdays, anniversaries, packages

    # --- Guest Services ---
    RESTAURANT_INFO = "RestaurantInfoAgent"          # Hours, address, atmosphere, owner
    SUPPORT_CONTACT = "SupportContactAgent"          # Complaints and out-of-scope requests

    @classmethod
    def parse(cls, value: object) -> Optional[AgentName]:
        """Return the matching AgentName, or None for anything unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return None


# =============================================================================
# Tool Name Enumeration
# =============================================================================
class ToolName(str, Enum):
    """Tools an agent can select in its "select" phase.

    Each tool has a parameter schema (core/tools.py TOOL_SCHEMAS) that is
    enforced before the tool runs.
    """

    CHECK_AVAILABILITY = "check_availability"
    GET_MENU_ITEMS = "get_menu_items"
    GET_RESTAURANT_INFO = "get_restaurant_info"
    CREATE_RESERVATION = "create_reservation"
    GET_CELEBRATION_PACKAGES = "get_celebration_packages"
    CLARIFY_AND_RESPOND = "clarify_and_respond"


# =============================================================================
# Response Type Enumeration
# =============================================================================
class ResponseType(str, Enum):
    """Shape of the reply returned to the caller.

    MESSAGE:  A normal conversational reply.
    REDIRECT: A reservation was committed; the client should move to the
              confirmation screen using ``reservationDetails``.
    """

    MESSAGE = "message"
    REDIRECT = "redirect"


# =============================================================================
# Flow Name Enumeration
# =============================================================================
class FlowName(str, Enum):
    """Multi-turn flows that can be in progress for a session."""

    BOOKING = "booking"


# =============================================================================
# Plan Source Enumeration
# =============================================================================
class PlanSource(str, Enum):
    """Where an ExecutionPlan came from.

    LLM:          A validated JSON plan from the planner.
    INTENT:       The planner answered with a single intent word.
    FALLBACK:     The planner failed; the keyword heuristic was used.
    RESUME:       An interrupted flow was restored.
    DIRECT_REPLY: A waiting agent receives the user's direct answer.
    """

    LLM = "llm"
    INTENT = "intent"
    FALLBACK = "fallback"
    RESUME = "resume"
    DIRECT_REPLY = "direct_reply"


# =============================================================================
# Dispatch Phase Enumeration
# =============================================================================
# The dispatch loop is an explicit state machine. The legal transitions live
# in orchestration/dispatcher.py (TRANSITIONS).
#
#   RECEIVED ─┬─> RESUMING ─────┐
#             ├─> DIRECT_REPLY ─┼─> EXECUTING ─┬─> HANDOFF ─> EXECUTING
#             └─> PLANNING ─────┘              ├─> COMMITTING ─> COMPLETED
#                                              └─> CONSOLIDATING ─> COMPLETED
# =============================================================================
class DispatchPhase(str, Enum):
    """States of the per-turn dispatch state machine.

    COMPLETED is the only terminal state.
    """

    RECEIVED = "received"
    RESUMING = "resuming"
    DIRECT_REPLY = "direct_reply"
    PLANNING = "planning"
    EXECUTING = "executing"
    HANDOFF = "handoff"
    COMMITTING = "committing"
    CONSOLIDATING = "consolidating"
    COMPLETED = "completed"
