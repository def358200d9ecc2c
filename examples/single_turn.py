"""
Single Turn Example — One Guest Message
=========================================

This example demonstrates the simplest way to use Concierge: send one
message through the facade and print the reply and the orchestrator
metadata.

No scripting is needed: the MockLLMProvider's smart defaults plan the
message to the RestaurantInfoAgent, pick a clarification tool and narrate
a reply.

Usage:
    python examples/single_turn.py
"""

from __future__ import annotations

import asyncio
import json

from concierge.core.config import OrchestratorConfig
from concierge.facade import ConciergeAI
from concierge.integrations.llm.mock import MockLLMProvider


async def main() -> None:
    """Send "Hello" and print the turn response."""
    provider = MockLLMProvider()

    async with ConciergeAI(OrchestratorConfig(), llm_provider=provider) as concierge:
        reply = await concierge.process_message("Hello", session_id="demo")

        data = reply.to_dict()
        print("Single Turn")
        print("-" * 40)
        print(f"Type     : {data['type']}")
        print(f"Reply    : {data['response']}")
        print(f"Agents   : {data['orchestrator']['totalAgentsInvolved']}")
        print(f"LLM calls: {provider.call_count}")
        print()
        print("Delegation chain:")
        print(json.dumps(data["orchestrator"]["delegationChain"], indent=2))


if __name__ == "__main__":
    asyncio.run(main())
