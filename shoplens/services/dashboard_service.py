import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from ..exceptions import InvalidArgumentError, store_errors
from ..repositories.interaction_repository import InteractionRepository
from ..repositories.product_repository import ProductRepository
from ..schemas.dashboard import (
    ConversionFunnel,
    InteractionTrend,
    MostInteractedProducts,
    ProductLeaderboardRow,
    SearchLeaderboardRow,
)
from ..schemas.interaction import InteractionType

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = "Unknown Product"

PRODUCT_INTERACTION_TYPES = (
    InteractionType.VIEW.value,
    InteractionType.CLICK.value,
    InteractionType.TIME_SPEND.value,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def hour_boundaries(end_time: datetime, last_hours: int) -> List[datetime]:
    """
    ``last_hours + 1`` edges splitting [end_time - last_hours h, end_time)
    into contiguous one-hour buckets, oldest first.
    """
    start_time = end_time - timedelta(hours=last_hours)
    return [start_time + timedelta(hours=i) for i in range(last_hours + 1)]


class DashboardService:
    """
    Read-only reports over the interaction store. Nothing is cached; each
    call reflects the store at the time it runs.
    """
    def __init__(
        self,
        interaction_repo: InteractionRepository,
        product_repo: ProductRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.interaction_repo = interaction_repo
        self.product_repo = product_repo
        self.clock = clock

    async def get_interaction_trends(self, last_hours: int) -> List[InteractionTrend]:
        """
        Hourly searches/views/clicks/time spent over the last ``last_hours``
        hours. Every bucket is returned, zero-filled when it saw no events,
        ordered by UTC hour of day.

        Buckets are anchored at now, not at clock hours, and ``hour`` is the
        UTC hour in which a bucket starts. At 14:20 with ``last_hours=1`` the
        single bucket covers 13:20-14:20 and is labelled 13.
        """
        if last_hours < 0:
            raise InvalidArgumentError("lastHours must be a non-negative integer.")
        if last_hours == 0:
            return []

        boundaries = hour_boundaries(self.clock().astimezone(timezone.utc), last_hours)

        with store_errors("compute interaction trends"):
            rows = await self.interaction_repo.get_hourly_totals(boundaries)

        totals = {row['bucket']: row for row in rows}
        trends = []
        for index, bucket_start in enumerate(boundaries[:-1], start=1):
            row = totals.get(index, {})
            trends.append(InteractionTrend(
                hour=bucket_start.hour,
                bucket_start=bucket_start,
                searches=int(row.get('searches') or 0),
                views=int(row.get('views') or 0),
                clicks=int(row.get('clicks') or 0),
                time_spend=float(row.get('time_spend') or 0),
            ))

        trends.sort(key=lambda trend: (trend.hour, trend.bucket_start))
        return trends

    async def get_most_interacted_products(self) -> MostInteractedProducts:
        with store_errors("compute most interacted products"):
            search_rows = await self.interaction_repo.get_search_totals()
            product_rows = await self.interaction_repo.get_product_totals(PRODUCT_INTERACTION_TYPES)
            titles = await self.product_repo.get_titles_by_ids([row['product_id'] for row in product_rows])

        searches = [
            SearchLeaderboardRow(name=row['name'], total_interactions=int(row['total_interactions']))
            for row in search_rows
        ]
        products = [
            ProductLeaderboardRow(
                product_id=row['product_id'],
                name=self._product_name(titles.get(row['product_id'])),
                total_interactions=int(row['total_interactions']),
                total_clicks=int(row['total_clicks'] or 0),
                total_time_spent=float(row['total_time_spent'] or 0),
            )
            for row in product_rows
        ]
        products.sort(key=lambda product: product.total_interactions, reverse=True)

        return MostInteractedProducts(searches=searches, products=products)

    @staticmethod
    def _product_name(title: Optional[str]) -> str:
        return title if title is not None else UNKNOWN_PRODUCT

    async def get_conversion_funnel(self) -> ConversionFunnel:
        with store_errors("compute conversion funnel"):
            totals = await self.interaction_repo.get_funnel_totals()

        total_seconds = totals.get('total_time_spent') or 0
        return ConversionFunnel(
            searches=int(totals.get('searches') or 0),
            views=int(totals.get('views') or 0),
            clicks=int(totals.get('clicks') or 0),
            total_time_spent=int(total_seconds // 60),
        )
