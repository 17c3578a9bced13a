import logging
import math
import numbers
from datetime import datetime, timezone
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from ..config import RecordingPolicy
from ..exceptions import InvalidArgumentError, store_errors
from ..repositories.interaction_repository import InteractionRepository
from ..schemas.interaction import (
    Interaction,
    InteractionRecord,
    InteractionType,
    SearchInteraction,
    TimeSpendInteraction,
)

logger = logging.getLogger(__name__)

_interaction_adapter = TypeAdapter(Interaction)


def parse_interaction_type(value) -> InteractionType:
    if isinstance(value, str) and not isinstance(value, InteractionType):
        value = value.strip().lower()
    try:
        return InteractionType(value)
    except ValueError:
        raise InvalidArgumentError(f"Invalid interaction type: {value!r}")


def build_interaction(
    session_id: str,
    interaction_type,
    product_id: Optional[str] = None,
    search_query: Optional[str] = None,
    time_spend: Optional[float] = None,
) -> Interaction:
    """
    Validate raw arguments and narrow them to the variant for their type.
    Fields that do not belong to the variant are dropped.
    """
    if not session_id or not str(session_id).strip():
        raise InvalidArgumentError("Session ID is required.")

    kind = parse_interaction_type(interaction_type)

    if kind == InteractionType.TIME_SPEND:
        if (
            time_spend is None
            or isinstance(time_spend, bool)
            or not isinstance(time_spend, numbers.Real)
            or math.isnan(time_spend)
            or math.isinf(time_spend)
            or time_spend < 0
        ):
            raise InvalidArgumentError("Time spent must be a non-negative number.")

    if kind != InteractionType.SEARCH and not product_id:
        raise InvalidArgumentError(f"Product ID is required for {kind.value} interactions.")

    payload = {"session_id": session_id, "interaction_type": kind}
    if kind == InteractionType.SEARCH:
        payload["search_query"] = search_query
    else:
        payload["product_id"] = product_id
    if kind == InteractionType.TIME_SPEND:
        payload["time_spend"] = float(time_spend)

    try:
        return _interaction_adapter.validate_python(payload)
    except ValidationError as e:
        raise InvalidArgumentError(f"Invalid interaction: {e.errors()[0]['msg']}")


class InteractionService:
    def __init__(self, interaction_repo: InteractionRepository, policy: RecordingPolicy = RecordingPolicy.MERGE):
        self.interaction_repo = interaction_repo
        self.policy = policy

    async def record_interaction(
        self,
        session_id: str,
        interaction_type,
        product_id: Optional[str] = None,
        search_query: Optional[str] = None,
        time_spend: Optional[float] = None,
    ) -> InteractionRecord:
        interaction = build_interaction(session_id, interaction_type, product_id, search_query, time_spend)
        return await self.record(interaction)

    async def record(self, interaction: Interaction) -> InteractionRecord:
        """Write one interaction: a single insert or merge-update."""
        write = self.interaction_repo.upsert if self.policy == RecordingPolicy.MERGE else self.interaction_repo.insert

        with store_errors("record interaction"):
            row = await write(
                session_id=interaction.session_id,
                interaction_type=interaction.interaction_type.value,
                product_id=getattr(interaction, "product_id", None),
                search_query=interaction.search_query if isinstance(interaction, SearchInteraction) else None,
                time_spend=interaction.time_spend if isinstance(interaction, TimeSpendInteraction) else None,
                timestamp=datetime.now(timezone.utc),
            )

        logger.debug(
            "Interaction recorded",
            extra={
                "session_id": interaction.session_id,
                "interaction_type": interaction.interaction_type.value,
                "product_id": getattr(interaction, "product_id", None),
                "policy": self.policy.value,
            }
        )
        return InteractionRecord(**row)

    async def record_search(self, session_id: str, search_query: Optional[str] = None) -> InteractionRecord:
        return await self.record_interaction(session_id, InteractionType.SEARCH, search_query=search_query)

    async def record_view(self, session_id: str, product_id: str) -> InteractionRecord:
        return await self.record_interaction(session_id, InteractionType.VIEW, product_id=product_id)

    async def record_click(self, session_id: str, product_id: str) -> InteractionRecord:
        return await self.record_interaction(session_id, InteractionType.CLICK, product_id=product_id)

    async def record_time_spent(self, session_id: str, product_id: str, time_spend: float) -> InteractionRecord:
        return await self.record_interaction(
            session_id, InteractionType.TIME_SPEND, product_id=product_id, time_spend=time_spend
        )
