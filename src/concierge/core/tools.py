"""
concierge.core.tools - Tool Schemas and Tool Results
======================================================

Every agent acts through exactly one tool per turn. This module defines:

    1. Parameter schemas (TOOL_SCHEMAS): one strict Pydantic model per tool.
       Unknown parameters are rejected; both camelCase and snake_case keys
       are accepted (``partySize`` or ``party_size``).
    2. Success payloads: one fixed shape per tool family, discriminated on
       ``kind``.
    3. ToolResult: a tagged union discriminated on ``status``.

    ToolResult
        ├── ToolSuccess(status="success", tool, payload)
        │       payload ∈ AvailabilityPayload | MenuPayload
        │               | CelebrationPayload | RestaurantInfoPayload
        │               | ReservationPayload | ClarificationPayload
        └── ToolFailure(status="failure", tool, error, error_code, errors)

All result models are frozen: once a ToolResult lands in a session's
global_context it is read-only.

Usage:
    >>> params = TOOL_SCHEMAS[ToolName.CHECK_AVAILABILITY].model_validate(
    ...     {"date": "2025-07-20", "time": "19:00", "partySize": 4}
    ... )
    >>> params.party_size
    4
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from concierge.core.enums import ToolName


_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
_TIME_PATTERN = r"^\d{2}:\d{2}$"
_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# =============================================================================
# Parameter Schemas
# =============================================================================
# The LLM picks the parameters, so they are validated before anything runs.
# A validation failure becomes a ToolFailure, never an exception.
# =============================================================================
class ToolParams(BaseModel):
    """Base class for tool parameter schemas."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class CheckAvailabilityParams(ToolParams):
    """Parameters for ``check_availability``."""

    date: str = Field(pattern=_DATE_PATTERN, description="Requested date (YYYY-MM-DD)")
    time: str = Field(pattern=_TIME_PATTERN, description="Requested time (HH:MM, 24h)")
    party_size: int = Field(ge=1, le=20, description="Number of guests (1-20)")


class GetMenuItemsParams(ToolParams):
    """Parameters for ``get_menu_items``. Every filter is optional."""

    query: Optional[str] = Field(default=None, description="Free-text dish search")
    is_gluten_free: Optional[bool] = Field(default=None, description="Only gluten-free dishes")
    is_vegan: Optional[bool] = Field(default=None, description="Only vegan dishes")
    is_vegetarian: Optional[bool] = Field(default=None, description="Only vegetarian dishes")
    category: Optional[Literal["Main", "Appetizer", "Dessert", "Drink"]] = Field(
        default=None,
        description="Menu section",
    )


class GetRestaurantInfoParams(ToolParams):
    """Parameters for ``get_restaurant_info``."""

    topic: Literal["hours", "address", "description", "contact", "general"] = Field(
        default="general",
        description="Which part of the restaurant profile to return",
    )


class CreateReservationParams(ToolParams):
    """Parameters for ``create_reservation``. All booking slots are required."""

    name: str = Field(min_length=1, description="Guest name")
    email: str = Field(pattern=_EMAIL_PATTERN, description="Guest email")
    phone: str = Field(min_length=3, description="Guest phone number")
    date: str = Field(pattern=_DATE_PATTERN, description="Reservation date (YYYY-MM-DD)")
    time: str = Field(pattern=_TIME_PATTERN, description="Reservation time (HH:MM)")
    party_size: int = Field(ge=1, le=20, description="Number of guests (1-20)")
    table_type: str = Field(min_length=1, description="Table type, e.g. 'standard'")
    special_requests: Optional[str] = Field(default=None, description="Free-text requests")


OccasionTag = Literal[
    "birthday", "anniversary", "romantic", "proposal", "celebration", "special_occasion"
]
BudgetRange = Literal["budget", "standard", "premium", "luxury"]


class GetCelebrationPackagesParams(ToolParams):
    """Parameters for ``get_celebration_packages``."""

    occasion_tags: list[OccasionTag] = Field(
        default_factory=list,
        description="Occasions the guest mentioned",
    )
    budget_range: Optional[BudgetRange] = Field(default=None, description="Budget bracket")


class ClarifyAndRespondParams(ToolParams):
    """Parameters for ``clarify_and_respond``, the tool every agent may use."""

    message: str = Field(min_length=1, description="Text to send back to the guest")
    response_type: Literal["clarification", "out_of_scope", "general_info", "greeting"] = Field(
        default="clarification",
        description="Why the agent is answering directly",
    )


TOOL_SCHEMAS: dict[ToolName, type[ToolParams]] = {
    ToolName.CHECK_AVAILABILITY: CheckAvailabilityParams,
    ToolName.GET_MENU_ITEMS: GetMenuItemsParams,
    ToolName.GET_RESTAURANT_INFO: GetRestaurantInfoParams,
    ToolName.CREATE_RESERVATION: CreateReservationParams,
    ToolName.GET_CELEBRATION_PACKAGES: GetCelebrationPackagesParams,
    ToolName.CLARIFY_AND_RESPOND: ClarifyAndRespondParams,
}


# =============================================================================
# Success Payloads
# =============================================================================
class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class TableOption(_Payload):
    """One bookable table type at the requested slot."""

    table_type: str = Field(description="Table type name")
    price: float = Field(default=0.0, ge=0, description="Table surcharge in EUR")
    capacity: int = Field(ge=1, description="Seats at this table type")


class AvailabilityPayload(_Payload):
    """Result of ``check_availability``."""

    kind: Literal["availability"] = "availability"
    date: str = Field(description="Checked date")
    time: str = Field(description="Checked time")
    party_size: int = Field(description="Checked party size")
    available_table_types: list[TableOption] = Field(
        default_factory=list,
        description="Table types that can seat the party (empty if fully booked)",
    )

    @property
    def is_available(self) -> bool:
        return bool(self.available_table_types)


class MenuItem(_Payload):
    """A single dish."""

    name: str
    category: str
    price: float = Field(ge=0)
    description: str = ""
    is_vegan: bool = False
    is_vegetarian: bool = False
    is_gluten_free: bool = False


class MenuPayload(_Payload):
    """Result of ``get_menu_items``."""

    kind: Literal["menu"] = "menu"
    query: Optional[str] = Field(default=None, description="Search text that was used")
    items: list[MenuItem] = Field(default_factory=list, description="Matching dishes")


class CelebrationPackage(_Payload):
    """A bookable celebration add-on."""

    name: str
    price: float = Field(ge=0)
    description: str = ""
    occasion_tags: list[str] = Field(default_factory=list)
    budget_range: str = "standard"


class CelebrationPayload(_Payload):
    """Result of ``get_celebration_packages``."""

    kind: Literal["celebration"] = "celebration"
    occasion_tags: list[str] = Field(default_factory=list)
    budget_range: Optional[str] = None
    packages: list[CelebrationPackage] = Field(default_factory=list)


class RestaurantInfoPayload(_Payload):
    """Result of ``get_restaurant_info``."""

    kind: Literal["restaurant_info"] = "restaurant_info"
    topic: str = Field(description="Requested topic")
    venue_name: str = Field(description="Restaurant name")
    details: dict[str, Any] = Field(default_factory=dict, description="Topic-specific facts")


class ReservationPayload(_Payload):
    """A finished booking record produced by ``create_reservation``.

    ``reservation_id`` and ``created_at`` stay None until the committer has
    persisted the booking.
    """

    kind: Literal["reservation"] = "reservation"
    name: str
    email: str
    phone: str
    date: str
    time: str
    party_size: int
    table_type: str
    special_requests: Optional[str] = None
    reservation_id: Optional[int] = None
    created_at: Optional[datetime] = None
    idempotency_key: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """True when every slot needed to insert the booking is filled."""
        return all(
            [self.name, self.email, self.phone, self.date, self.time, self.table_type]
        ) and self.party_size > 0


class ClarificationPayload(_Payload):
    """Result of ``clarify_and_respond``: text the agent wants said as-is."""

    kind: Literal["clarification"] = "clarification"
    message: str
    response_type: str = "clarification"


ToolPayload = Annotated[
    Union[
        AvailabilityPayload,
        MenuPayload,
        CelebrationPayload,
        RestaurantInfoPayload,
        ReservationPayload,
        ClarificationPayload,
    ],
    Field(discriminator="kind"),
]


# =============================================================================
# Tool Result (tagged union)
# =============================================================================
class ToolSuccess(BaseModel):
    """A tool ran and produced a payload."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    tool: ToolName = Field(description="Tool that produced this result")
    payload: ToolPayload = Field(description="Tool-family specific payload")


class ToolFailure(BaseModel):
    """A tool could not run (bad parameters, data-source error, timeout)."""

    model_config = ConfigDict(frozen=True)

    status: Literal["failure"] = "failure"
    tool: str = Field(description="Tool that failed (may be an unknown tool name)")
    error: str = Field(description="Human-readable failure reason")
    error_code: str = Field(default="TOOL_ERROR", description="Machine-readable code")
    errors: list[str] = Field(default_factory=list, description="Field-level messages")


ToolResult = Annotated[Union[ToolSuccess, ToolFailure], Field(discriminator="status")]

TOOL_RESULT_ADAPTER: TypeAdapter[Any] = TypeAdapter(ToolResult)


def clarification(message: str, response_type: str = "clarification") -> ToolSuccess:
    """Build a clarify_and_respond success result."""
    return ToolSuccess(
        tool=ToolName.CLARIFY_AND_RESPOND,
        payload=ClarificationPayload(message=message, response_type=response_type),
    )


def reservation_payload(result: Optional[Union[ToolSuccess, ToolFailure]]) -> Optional[ReservationPayload]:
    """Return the booking payload carried by ``result``, if it is a complete one."""
    if isinstance(result, ToolSuccess) and isinstance(result.payload, ReservationPayload):
        if result.payload.is_complete:
            return result.payload
    return None


def tool_result_to_dict(result: Union[ToolSuccess, ToolFailure]) -> dict[str, Any]:
    """Serialize a ToolResult the way it appears on the wire (camelCase keys)."""
    return result.model_dump(mode="json", by_alias=True)
