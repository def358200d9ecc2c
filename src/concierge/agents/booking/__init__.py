"""
concierge.agents.booking - Booking Flow Agents
================================================

    TableAvailabilityAgent ──(tables available)──→ ReservationAgent
"""

from concierge.agents.booking.reservation_agent import ReservationAgent
from concierge.agents.booking.table_availability_agent import TableAvailabilityAgent

__all__ = [
    "ReservationAgent",
    "TableAvailabilityAgent",
]
