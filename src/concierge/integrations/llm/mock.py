"""
concierge.integrations.llm.mock - Mock LLM Provider for Testing
=================================================================

A provider that returns configurable responses without network calls. It is
the default provider for development and the test suite.

How It Works:
    The mock keeps a FIFO response queue. When generate() is called:
    1. If failure simulation is on, raise RuntimeError.
    2. If there are queued responses, return the next one.
    3. Otherwise return a smart default chosen from the prompt kind:

        decomposition prompt   → one-step plan to RestaurantInfoAgent
        tool-selection prompt  → clarify_and_respond selection
        narration prompt       → a short narrated reply
        yes/no classifier      → "NO"

    One turn issues its LLM calls in a fixed order (planner, each agent's
    tool selection, narrator), so a test scripts a whole turn by queueing
    responses in that order.

Usage:
    >>> provider = MockLLMProvider()
    >>> provider.queue_response('[{"step": 1, "agent_to_use": "MenuPricingAgent", '
    ...                         '"sub_task_query": "menu"}]')
    >>> response = await provider.generate("...JSON array...")
"""

from __future__ import annotations

import json
import re
from collections import deque
from typing import Any, Optional

import structlog

from concierge.core.config import LLMConfig
from concierge.integrations.llm.base import BaseLLMProvider, LLMResponse, LLMUsage


logger = structlog.get_logger()

# Markers the Concierge prompts carry; used to pick a smart default.
PLANNER_MARKER = "Respond with ONLY a JSON array"
SELECTOR_MARKER = '"tool_to_call"'
NARRATOR_MARKER = "Write one reply to the guest"
YES_NO_MARKER = "Answer YES or NO"

_USER_REQUEST = re.compile(r'User request:\s*"(.*)"')


class MockLLMProvider(BaseLLMProvider):
    """Mock LLM provider for testing and development.

    Features:
        - **Response Queue**: Queue specific responses for controlled testing.
        - **Smart Defaults**: Prompt-aware answers when the queue is empty.
        - **Call History**: Records every call for test assertions.
        - **Error Simulation**: Can be configured to raise on every call.

    Example:
        >>> provider = MockLLMProvider()
        >>> provider.queue_response("menu")
        >>> response = await provider.generate("Classify this request")
        >>> assert response.content == "menu"
        >>> assert provider.call_count == 1
    """

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        default_response: str = "Mock LLM response",
    ) -> None:
        if config is None:
            config = LLMConfig(provider="mock", model="mock-model")
        super().__init__(config)

        self._response_queue: deque[LLMResponse] = deque()
        self._call_history: list[dict[str, Any]] = []
        self._default_response = default_response

        self._should_fail: bool = False
        self._failure_message: str = "Mock LLM API error"

        self._logger = logger.bind(component="mock_llm_provider")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """All recorded calls ("prompt", "system_prompt", "kwargs")."""
        return self._call_history

    @property
    def call_count(self) -> int:
        return len(self._call_history)

    @property
    def queue_size(self) -> int:
        return len(self._response_queue)

    # =========================================================================
    # Queue Management
    # =========================================================================

    def queue_response(
        self,
        content: str,
        *,
        model: Optional[str] = None,
        finish_reason: str = "stop",
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """Add a response to the queue (FIFO).

        Example:
            >>> provider.queue_response("menu")
            >>> provider.queue_response('{"tool_to_call": "get_menu_items", "parameters": {}}')
        """
        self._response_queue.append(
            LLMResponse(
                content=content,
                model=model or self.model,
                usage=self._estimate_usage(content),
                finish_reason=finish_reason,
                metadata=metadata or {},
            )
        )

    def queue_json(self, payload: Any) -> None:
        """Queue ``payload`` serialized as JSON."""
        self.queue_response(json.dumps(payload))

    def queue_tool_call(self, tool: str, **parameters: Any) -> None:
        """Queue a tool-selection answer for an agent."""
        self.queue_json({"tool_to_call": tool, "parameters": parameters})

    def clear_queue(self) -> None:
        self._response_queue.clear()

    def clear_history(self) -> None:
        self._call_history.clear()

    # =========================================================================
    # Error Simulation
    # =========================================================================

    def set_should_fail(self, should_fail: bool, message: str = "Mock LLM API error") -> None:
        """When enabled, every call raises RuntimeError(message)."""
        self._should_fail = should_fail
        self._failure_message = message

    # =========================================================================
    # Core LLM Interface Implementation
    # =========================================================================

    async def generate(
        self,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        stop_sequences: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        self._call_history.append({
            "prompt": prompt,
            "system_prompt": None,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "kwargs": kwargs,
        })

        self._logger.debug(
            "mock_generate_called",
            prompt_length=len(prompt),
            queue_size=len(self._response_queue),
        )

        if self._should_fail:
            raise RuntimeError(self._failure_message)

        if self._response_queue:
            return self._response_queue.popleft()

        return self._generate_smart_default(prompt)

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
        self._call_history.append({
            "prompt": user_prompt,
            "system_prompt": system_prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "kwargs": kwargs,
        })

        self._logger.debug(
            "mock_generate_with_system_called",
            system_prompt_length=len(system_prompt),
            user_prompt_length=len(user_prompt),
            queue_size=len(self._response_queue),
        )

        if self._should_fail:
            raise RuntimeError(self._failure_message)

        if self._response_queue:
            return self._response_queue.popleft()

        return self._generate_smart_default(f"{system_prompt}\n\n{user_prompt}")

    # =========================================================================
    # Smart Default Generation
    # =========================================================================

    def _generate_smart_default(self, prompt: str) -> LLMResponse:
        """Pick a plausible answer for the kind of prompt received."""
        if PLANNER_MARKER in prompt:
            content = self._mock_plan_response(prompt)
        elif SELECTOR_MARKER in prompt:
            content = self._mock_selection_response()
        elif NARRATOR_MARKER in prompt:
            content = self._mock_narration_response()
        elif YES_NO_MARKER in prompt:
            content = "NO"
        else:
            content = self._default_response

        return LLMResponse(
            content=content,
            model=self.model,
            usage=self._estimate_usage(content),
            finish_reason="stop",
            metadata={"source": "smart_default"},
        )

    @staticmethod
    def _mock_plan_response(prompt: str) -> str:
        match = _USER_REQUEST.search(prompt)
        request = match.group(1) if match else "General restaurant question"
        return json.dumps([
            {"step": 1, "agent_to_use": "RestaurantInfoAgent", "sub_task_query": request or "General restaurant question"},
        ])

    @staticmethod
    def _mock_selection_response() -> str:
        return json.dumps({
            "tool_to_call": "clarify_and_respond",
            "parameters": {
                "message": "Could you tell me a little more about what you need?",
                "response_type": "clarification",
            },
        })

    @staticmethod
    def _mock_narration_response() -> str:
        return "Here is what I found for you. Let me know if there is anything else I can help with."

    @staticmethod
    def _estimate_usage(text: str) -> LLMUsage:
        """Rough estimate of ~4 characters per token."""
        estimated_tokens = max(1, len(text) // 4)
        return LLMUsage(
            prompt_tokens=estimated_tokens,
            completion_tokens=estimated_tokens,
            total_tokens=estimated_tokens * 2,
        )
