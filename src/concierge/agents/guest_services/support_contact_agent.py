"""
concierge.agents.guest_services.support_contact_agent - Support Contact Agent
===============================================================================

Handles complaints and support requests. It has no lookup tool of its own,
so the restaurant's contact details are added to its selection prompt and
it answers through clarify_and_respond, pointing the guest to the owner.
"""

from __future__ import annotations

from concierge.agents.base import BaseAgent
from concierge.core.exceptions import ConciergeError


class SupportContactAgent(BaseAgent):
    """Routes support issues to the restaurant's contact person."""

    def _guidance(self) -> str:
        return (
            "Acknowledge the guest's problem briefly and politely. Call "
            "clarify_and_respond with response_type \"general_info\" and a message that "
            "gives the restaurant's contact person, email and phone so the guest can "
            "reach them directly."
        )

    async def _prompt_context(self, venue_id: int) -> str:
        try:
            info = await self._tools.data_source.get_restaurant_info(venue_id, "contact")
        except ConciergeError as e:
            self._logger.warning("contact_lookup_failed", venue_id=venue_id, error=e.message)
            return ""

        details = (info.get("details") or {}).get("contact") or {}
        lines = [f"- {key}: {value}" for key, value in details.items()]
        if not lines:
            return ""
        return f"Contact details for {info.get('venue_name', 'the restaurant')}:\n" + "\n".join(lines)
