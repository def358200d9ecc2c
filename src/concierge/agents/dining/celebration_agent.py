"""
concierge.agents.dining.celebration_agent - Celebration Agent
===============================================================

Handles birthdays, anniversaries, proposals and other special occasions
by looking up the restaurant's celebration add-ons (cake, flowers,
champagne, decorations).
"""

from __future__ import annotations

from concierge.agents.base import BaseAgent


class CelebrationAgent(BaseAgent):
    """Looks up celebration packages for the guest's occasion."""

    def _guidance(self) -> str:
        return (
            "Call get_celebration_packages with the occasions the guest mentions as "
            "occasion_tags (birthday, anniversary, romantic, proposal, celebration, "
            "special_occasion) and a budget_range only if they state one. If the occasion "
            "is unclear call clarify_and_respond and ask what they are celebrating."
        )
