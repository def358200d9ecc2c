"""
concierge.agents.tools - Tool Executor
========================================

Runs the tool an agent selected. Parameters are validated against
TOOL_SCHEMAS before anything executes; validation failures, data-source
errors and timeouts come back as a ToolFailure so the turn continues.

    execute_tool(tool_name, parameters, venue_id)
        │
        ├── unknown tool / bad parameters ──→ ToolFailure (TOOL_VALIDATION_ERROR)
        ├── data source timeout ────────────→ ToolFailure (TOOL_TIMEOUT)
        ├── data source ConciergeError ─────→ ToolFailure (its error_code)
        └── handler ────────────────────────→ ToolSuccess(payload)

``create_reservation`` only assembles the finished booking payload. Storing
it is the committer's job.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Union

import structlog
from pydantic import ValidationError

from concierge.core.enums import ToolName
from concierge.core.exceptions import ConciergeError, ToolValidationError
from concierge.core.tools import (
    TOOL_SCHEMAS,
    AvailabilityPayload,
    CelebrationPayload,
    CheckAvailabilityParams,
    ClarificationPayload,
    ClarifyAndRespondParams,
    CreateReservationParams,
    GetCelebrationPackagesParams,
    GetMenuItemsParams,
    GetRestaurantInfoParams,
    MenuPayload,
    ReservationPayload,
    RestaurantInfoPayload,
    ToolFailure,
    ToolParams,
    ToolSuccess,
)
from concierge.integrations.restaurant.base import RestaurantDataSource


logger = structlog.get_logger()

_Handler = Callable[[Any, int], Awaitable[Any]]


class ToolExecutor:
    """Validates tool parameters and dispatches to the restaurant data source.

    Attributes:
        _data_source: Business data behind the tools.
        _timeout: Seconds allowed for one data-source call.

    Example:
        >>> executor = ToolExecutor(InMemoryRestaurantDataSource())
        >>> result = await executor.execute_tool(
        ...     "check_availability", {"date": "2025-07-20", "time": "19:00", "partySize": 4}, 1
        ... )
        >>> result.status
        'success'
    """

    def __init__(self, data_source: RestaurantDataSource, timeout_seconds: float = 10.0) -> None:
        self._data_source = data_source
        self._timeout = timeout_seconds
        self._handlers: dict[ToolName, _Handler] = {
            ToolName.CHECK_AVAILABILITY: self._check_availability,
            ToolName.GET_MENU_ITEMS: self._get_menu_items,
            ToolName.GET_RESTAURANT_INFO: self._get_restaurant_info,
            ToolName.CREATE_RESERVATION: self._create_reservation,
            ToolName.GET_CELEBRATION_PACKAGES: self._get_celebration_packages,
            ToolName.CLARIFY_AND_RESPOND: self._clarify_and_respond,
        }
        self._logger = logger.bind(component="tool_executor")

    @property
    def data_source(self) -> RestaurantDataSource:
        return self._data_source

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def validate(tool_name: object, parameters: Any) -> tuple[ToolName, ToolParams]:
        """Resolve the tool and validate its parameters.

        Raises:
            ToolValidationError: Unknown tool, non-object parameters, or a
                schema violation (including unknown parameters).
        """
        try:
            tool = ToolName(str(tool_name))
        except ValueError:
            raise ToolValidationError(
                message=f"Unknown tool: '{tool_name}'",
                tool_name=str(tool_name),
            ) from None

        if parameters is None:
            parameters = {}
        if not isinstance(parameters, dict):
            raise ToolValidationError(
                message="Tool parameters must be an object",
                tool_name=tool.value,
            )

        try:
            params = TOOL_SCHEMAS[tool].model_validate(parameters)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(part) for part in err['loc']) or '(root)'}: {err['msg']}"
                for err in e.errors()
            ]
            raise ToolValidationError(
                message=f"Invalid parameters for {tool.value}",
                tool_name=tool.value,
                errors=errors,
            ) from e
        return tool, params

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute_tool(
        self,
        tool_name: object,
        parameters: Any,
        venue_id: int,
    ) -> Union[ToolSuccess, ToolFailure]:
        """Validate and run one tool.

        Returns:
            ToolSuccess with the tool's payload, or ToolFailure.
        """
        try:
            tool, params = self.validate(tool_name, parameters)
        except ToolValidationError as e:
            self._logger.warning("tool_validation_failed", tool=e.tool_name, errors=e.errors)
            return ToolFailure(
                tool=e.tool_name,
                error=e.message,
                error_code=e.error_code,
                errors=e.errors,
            )

        try:
            payload = await asyncio.wait_for(
                self._handlers[tool](params, venue_id),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            self._logger.warning("tool_timed_out", tool=tool.value, timeout_seconds=self._timeout)
            return ToolFailure(
                tool=tool.value,
                error=f"{tool.value} timed out after {self._timeout}s",
                error_code="TOOL_TIMEOUT",
            )
        except ConciergeError as e:
            self._logger.warning("tool_failed", tool=tool.value, error_code=e.error_code, error=e.message)
            return ToolFailure(tool=tool.value, error=e.message, error_code=e.error_code)

        self._logger.debug("tool_executed", tool=tool.value, venue_id=venue_id)
        return ToolSuccess(tool=tool, payload=payload)

    # =========================================================================
    # Handlers
    # =========================================================================

    async def _check_availability(self, params: CheckAvailabilityParams, venue_id: int) -> AvailabilityPayload:
        tables = await self._data_source.check_availability(
            venue_id, params.date, params.time, params.party_size
        )
        return AvailabilityPayload(
            date=params.date,
            time=params.time,
            party_size=params.party_size,
            available_table_types=tables,
        )

    async def _get_menu_items(self, params: GetMenuItemsParams, venue_id: int) -> MenuPayload:
        items = await self._data_source.search_menu(
            venue_id,
            query=params.query,
            is_gluten_free=params.is_gluten_free,
            is_vegan=params.is_vegan,
            is_vegetarian=params.is_vegetarian,
            category=params.category,
        )
        return MenuPayload(query=params.query, items=items)

    async def _get_restaurant_info(self, params: GetRestaurantInfoParams, venue_id: int) -> RestaurantInfoPayload:
        info = await self._data_source.get_restaurant_info(venue_id, params.topic)
        return RestaurantInfoPayload(
            topic=params.topic,
            venue_name=info.get("venue_name", ""),
            details=info.get("details", {}),
        )

    async def _create_reservation(self, params: CreateReservationParams, venue_id: int) -> ReservationPayload:
        return ReservationPayload(**params.model_dump())

    async def _get_celebration_packages(
        self,
        params: GetCelebrationPackagesParams,
        venue_id: int,
    ) -> CelebrationPayload:
        packages = await self._data_source.get_celebration_packages(
            venue_id, list(params.occasion_tags), params.budget_range
        )
        return CelebrationPayload(
            occasion_tags=list(params.occasion_tags),
            budget_range=params.budget_range,
            packages=packages,
        )

    async def _clarify_and_respond(self, params: ClarifyAndRespondParams, venue_id: int) -> ClarificationPayload:
        return ClarificationPayload(message=params.message, response_type=params.response_type)
