"""
Booking Conversation Example — Interrupt, Resume, Commit
==========================================================

This example walks one session through a complete booking:

    1. "A table for 4 on 2026-10-23 at 20:00?"  → availability, booking opens
    2. "What's the owner's phone number?"        → topic switch, booking parked
    3. "Yes, continue the reservation"           → booking restored
    4. Name, email and phone                     → reservation committed (redirect)

All LLM answers come from MockLLMProvider. Each turn's calls happen in a
fixed order (planner, tool selection per agent, narrator), so we queue
them in that order. Turns that route straight to an agent skip the
planner; a committed booking skips the narrator.

Usage:
    python examples/booking_conversation.py
"""

from __future__ import annotations

import asyncio
import json

from concierge.core.config import OrchestratorConfig
from concierge.facade import ConciergeAI
from concierge.integrations.llm.mock import MockLLMProvider


SESSION = "booking-demo"


def _plan(agent: str, subtask: str) -> list[dict]:
    return [{"step": 1, "agent_to_use": agent, "sub_task_query": subtask}]


def _show(turn: int, message: str, data: dict) -> None:
    print(f"[{turn}] guest : {message}")
    print(f"    host  : {data['response']}")
    print(f"    type  : {data['type']}")
    chain = data["orchestrator"].get("delegationChain", [])
    print(f"    agents: {', '.join(step['agent'] for step in chain) or '-'}")
    print()


async def main() -> None:
    provider = MockLLMProvider()

    async with ConciergeAI(OrchestratorConfig(), llm_provider=provider) as concierge:
        # --- Turn 1: availability ---
        message = "A table for 4 on 2026-10-23 at 20:00?"
        provider.queue_json(_plan("TableAvailabilityAgent", message))
        provider.queue_tool_call("check_availability", date="2026-10-23", time="20:00", partySize=4)
        provider.queue_response("Good news: standard and grass tables are free. Which would you like?")
        reply = await concierge.process_message(message, session_id=SESSION)
        _show(1, message, reply.to_dict())

        # --- Turn 2: topic switch ---
        message = "What's the owner's phone number?"
        provider.queue_json(_plan("RestaurantInfoAgent", message))
        provider.queue_tool_call("get_restaurant_info", topic="contact")
        provider.queue_response("You can reach Vasilis Manias at +30 22420 12345.")
        reply = await concierge.process_message(message, session_id=SESSION)
        _show(2, message, reply.to_dict())

        # --- Turn 3: resume ---
        message = "Yes, continue the reservation"
        provider.queue_tool_call(
            "clarify_and_respond",
            message="Of course! May I have your name, email and phone number?",
        )
        provider.queue_response("Of course! May I have your name, email and phone number?")
        reply = await concierge.process_message(message, session_id=SESSION)
        _show(3, message, reply.to_dict())

        # --- Turn 4: commit ---
        message = "Grass please. Maria Papadopoulou, maria@example.com, +30 690 000 0000"
        provider.queue_tool_call(
            "create_reservation",
            name="Maria Papadopoulou",
            email="maria@example.com",
            phone="+30 690 000 0000",
            tableType="grass",
        )
        reply = await concierge.process_message(message, session_id=SESSION)
        data = reply.to_dict()
        _show(4, message, data)

        print("Reservation details:")
        print(json.dumps(data.get("reservationDetails"), indent=2))
        print(f"Stored reservations: {await concierge.reservation_store.count()}")


if __name__ == "__main__":
    asyncio.run(main())
