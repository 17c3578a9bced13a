from datetime import datetime
from typing import List, Optional

from .base import CamelModel


class InteractionTrend(CamelModel):
    hour: int  # 0-23, UTC hour of bucket_start; the newest bucket ends at now, so it carries the previous hour
    bucket_start: datetime
    searches: int = 0
    views: int = 0
    clicks: int = 0
    time_spend: float = 0.0  # seconds


class SearchLeaderboardRow(CamelModel):
    name: Optional[str] = None  # the search query; None for searches recorded without one
    total_interactions: int


class ProductLeaderboardRow(CamelModel):
    product_id: Optional[str] = None
    name: str
    total_interactions: int
    total_clicks: int
    total_time_spent: float  # seconds


class MostInteractedProducts(CamelModel):
    searches: List[SearchLeaderboardRow]
    products: List[ProductLeaderboardRow]


class ConversionFunnel(CamelModel):
    searches: int = 0
    views: int = 0
    clicks: int = 0
    total_time_spent: int = 0  # whole minutes
