"""
Concierge Test Suite
====================

Test organization mirrors the source code structure:
    tests/
    ├── test_core/          → Tests for concierge.core (config, models, state, tools)
    ├── test_agents/        → Tests for concierge.agents (registry, tools, agents)
    ├── test_orchestration/ → Tests for concierge.orchestration (planner, dispatcher, ...)
    ├── test_infrastructure/→ Tests for concierge.infrastructure (reservation store)
    ├── test_integrations/  → Tests for concierge.integrations (LLM, restaurant data)
    ├── test_integration/   → End-to-end conversation scenarios
    └── conftest.py         → Shared pytest fixtures

Running Tests:
    pytest                          # Run all tests
    pytest tests/test_core/         # Run only core tests
    pytest --cov=concierge          # Run with coverage report
"""
