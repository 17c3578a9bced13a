from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import ConfigDict, Field

from .base import CamelModel


class InteractionType(str, Enum):
    SEARCH = "search"
    VIEW = "view"
    CLICK = "click"
    TIME_SPEND = "time_spend"


class _BaseInteraction(CamelModel):
    model_config = ConfigDict(frozen=True)

    session_id: str = Field(..., min_length=1)


class SearchInteraction(_BaseInteraction):
    interaction_type: Literal[InteractionType.SEARCH] = InteractionType.SEARCH
    search_query: Optional[str] = None


class ViewInteraction(_BaseInteraction):
    interaction_type: Literal[InteractionType.VIEW] = InteractionType.VIEW
    product_id: str


class ClickInteraction(_BaseInteraction):
    interaction_type: Literal[InteractionType.CLICK] = InteractionType.CLICK
    product_id: str


class TimeSpendInteraction(_BaseInteraction):
    interaction_type: Literal[InteractionType.TIME_SPEND] = InteractionType.TIME_SPEND
    product_id: str
    time_spend: float = Field(..., ge=0, allow_inf_nan=False)


Interaction = Annotated[
    Union[SearchInteraction, ViewInteraction, ClickInteraction, TimeSpendInteraction],
    Field(discriminator="interaction_type"),
]


class InteractionRecord(CamelModel):
    """Stored interaction row as returned to clients"""
    id: int
    session_id: str
    interaction_type: InteractionType
    product_id: Optional[str] = None
    search_query: Optional[str] = None
    time_spend: Optional[float] = None
    count: int = 1
    timestamp: datetime


class InteractionCreate(CamelModel):
    """Body of POST /interactions. Type-specific checks happen in the service."""
    session_id: str = ""
    interaction_type: str
    product_id: Optional[str] = None
    search_query: Optional[str] = None
    time_spend: Optional[float] = None


class TrackClickRequest(CamelModel):
    session_id: str = ""


class TrackTimeSpentRequest(CamelModel):
    session_id: str = ""
    time_spend: Optional[float] = None
