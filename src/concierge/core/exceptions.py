"""
concierge.core.exceptions - Custom Exception Hierarchy
========================================================

Structured exceptions for Concierge. Components raise a specific subclass;
the boundary components (planner, execution adapter, consolidator,
committer, facade) catch them and turn them into a degraded result.

Exception Hierarchy:
    ConciergeError (base)
        ├── ConfigurationError   - Invalid config or classifier rules
        ├── StateError           - Invalid conversation state
        ├── PlanParseError       - Planner output could not be used
        ├── UnknownAgentError    - Agent name not in the registry
        ├── ToolValidationError  - Tool parameters rejected by the schema
        ├── AgentExecutionError  - An agent raised or timed out
        ├── PersistenceError     - Reservation insert failed
        ├── NarrationError       - Narrator failed or returned junk
        └── DispatchError        - Illegal dispatch state transition

Handling Map:
    PlanParseError       → heuristic fallback plan
    UnknownAgentError    → step skipped / chain terminated / apology result
    ToolValidationError  → ToolFailure result
    AgentExecutionError  → apologetic AgentResult (task complete)
    PersistenceError     → non-fatal ``insertError`` on the response
    NarrationError       → template consolidation
    anything else        → top-level guard in ConciergeAI.process_message

Usage:
    >>> from concierge.core.exceptions import UnknownAgentError
    >>> raise UnknownAgentError(agent_name="PizzaAgent")
"""

from __future__ import annotations

from typing import Any, Optional


# =============================================================================
# Base Exception
# =============================================================================
# Every Concierge error can be caught with a single except clause:
#
#   try:
#       plan = await planner.get_plan(message, history, venue_id)
#   except ConciergeError as e:
#       logger.error(e.message, error_code=e.error_code, details=e.details)
# =============================================================================
class ConciergeError(Exception):
    """Base exception for all Concierge errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code (UPPER_SNAKE_CASE).
        details: Arbitrary dict with additional debugging context.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception to a dictionary for logging and responses.

        Returns:
            Dictionary with error_type, message, error_code, and details.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        """Detailed string representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


# =============================================================================
# Configuration Error
# =============================================================================
class ConfigurationError(ConciergeError):
    """Raised when configuration or classifier rules are invalid.

    Example:
        >>> raise ConfigurationError(
        ...     message="Classifier rules file is not a mapping",
        ...     details={"path": "rules.yaml"},
        ... )
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# State Error
# =============================================================================
# Raised by the session store when a ConversationState would violate its
# invariants (for example a next_agent the registry does not know).
# =============================================================================
class StateError(ConciergeError):
    """Raised when conversation state is invalid.

    Attributes:
        session_id: The session whose state was rejected.
    """

    def __init__(
        self,
        message: str,
        session_id: Optional[str] = None,
        error_code: str = "STATE_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        if session_id is not None:
            enriched_details["session_id"] = session_id

        super().__init__(message=message, error_code=error_code, details=enriched_details)
        self.session_id = session_id


# =============================================================================
# Plan Parse Error
# =============================================================================
# The planner is unreliable by nature. This error never leaves the planner:
# it is caught there and replaced by the heuristic plan.
# =============================================================================
class PlanParseError(ConciergeError):
    """Raised when planner output cannot be turned into an ExecutionPlan.

    Attributes:
        raw_output: The (truncated) planner output that failed to parse.
    """

    def __init__(
        self,
        message: str,
        raw_output: Optional[str] = None,
        error_code: str = "PLAN_PARSE_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        if raw_output is not None:
            enriched_details["raw_output"] = raw_output[:500]

        super().__init__(message=message, error_code=error_code, details=enriched_details)
        self.raw_output = raw_output


# =============================================================================
# Unknown Agent Error
# =============================================================================
class UnknownAgentError(ConciergeError):
    """Raised when an agent name is not registered.

    Attributes:
        agent_name: The unrecognised name, exactly as received.
    """

    def __init__(
        self,
        agent_name: str,
        message: Optional[str] = None,
        error_code: str = "UNKNOWN_AGENT",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["agent_name"] = agent_name

        super().__init__(
            message=message or f"Unknown agent: '{agent_name}'",
            error_code=error_code,
            details=enriched_details,
        )
        self.agent_name = agent_name


# =============================================================================
# Tool Validation Error
# =============================================================================
# Converted by the ToolExecutor into a ToolFailure so the turn continues.
# =============================================================================
class ToolValidationError(ConciergeError):
    """Raised when tool parameters fail schema validation.

    Attributes:
        tool_name: The tool whose parameters were rejected.
        errors: Field-level validation messages.
    """

    def __init__(
        self,
        message: str,
        tool_name: str,
        errors: Optional[list[str]] = None,
        error_code: str = "TOOL_VALIDATION_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["tool_name"] = tool_name
        enriched_details["errors"] = list(errors or [])

        super().__init__(message=message, error_code=error_code, details=enriched_details)
        self.tool_name = tool_name
        self.errors = list(errors or [])


# =============================================================================
# Agent Execution Error
# =============================================================================
class AgentExecutionError(ConciergeError):
    """Raised when an agent fails while handling a subtask.

    The execution adapter wraps the underlying exception in this type before
    turning it into an apologetic AgentResult.

    Attributes:
        agent_name: The agent that failed.
    """

    def __init__(
        self,
        message: str,
        agent_name: str,
        error_code: str = "AGENT_EXECUTION_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["agent_name"] = agent_name

        super().__init__(message=message, error_code=error_code, details=enriched_details)
        self.agent_name = agent_name


# =============================================================================
# Persistence Error
# =============================================================================
class PersistenceError(ConciergeError):
    """Raised when a reservation cannot be stored.

    Attributes:
        venue_id: The venue the insert targeted, if known.
    """

    def __init__(
        self,
        message: str,
        venue_id: Optional[int] = None,
        error_code: str = "PERSISTENCE_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        if venue_id is not None:
            enriched_details["venue_id"] = venue_id

        super().__init__(message=message, error_code=error_code, details=enriched_details)
        self.venue_id = venue_id


# =============================================================================
# Narration Error
# =============================================================================
class NarrationError(ConciergeError):
    """Raised when the narrator fails or returns unusable text."""

    def __init__(
        self,
        message: str,
        error_code: str = "NARRATION_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Dispatch Error
# =============================================================================
# A DispatchError is a programming error in the dispatcher itself. It is the
# one error the top-level guard in the facade is expected to see.
# =============================================================================
class DispatchError(ConciergeError):
    """Raised on an illegal dispatch state transition.

    Attributes:
        from_phase: Phase the dispatcher was in.
        to_phase: Phase it tried to enter.
    """

    def __init__(
        self,
        message: str,
        from_phase: Optional[str] = None,
        to_phase: Optional[str] = None,
        error_code: str = "ILLEGAL_TRANSITION",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        if from_phase is not None:
            enriched_details["from_phase"] = from_phase
        if to_phase is not None:
            enriched_details["to_phase"] = to_phase

        super().__init__(message=message, error_code=error_code, details=enriched_details)
        self.from_phase = from_phase
        self.to_phase = to_phase
