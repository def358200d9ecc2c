"""
concierge.integrations - External Service Integration Layer
=============================================================

Adapters for the external services Concierge depends on. Each is
abstracted behind an interface so implementations can be swapped.

Sub-packages:
    llm/         - Large Language Model providers (planner, selectors, narrator)
    restaurant/  - Restaurant business data (tables, menu, packages, profile)
"""

__all__: list[str] = []
