from typing import List

from .base import CamelModel
from .product import ProductResponse


class RecommendationResponse(CamelModel):
    """AI recommendation result"""
    recommendation_text: str
    recommended_products: List[ProductResponse]
