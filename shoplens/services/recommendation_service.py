import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping

from ..core.completion_client import CompletionClient
from ..exceptions import InvalidArgumentError, store_errors
from ..repositories.interaction_repository import InteractionRepository
from ..repositories.product_repository import ProductRepository
from ..schemas.product import ProductResponse
from ..schemas.recommendation import RecommendationResponse

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10

REFUSAL_TEXT = (
    "Oops! It looks like your query contains inappropriate or unrelated content. "
    "Please try searching for something else."
)
NO_MATCH_TEXT = "No products found that match your query."

PRODUCT_ID_PATTERN = re.compile(r"Product ID:\s*\[?([0-9A-Za-z-]+)\]?")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(interaction: Mapping[str, Any]) -> datetime:
    timestamp = interaction.get('timestamp')
    if timestamp is None:
        return _EPOCH
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def build_interaction_history(interactions: Iterable[Mapping[str, Any]]) -> str:
    """
    Summarise the most recent interactions, newest first, for use in a prompt.
    An empty history yields an empty string.
    """
    recent = sorted(interactions or [], key=_sort_key, reverse=True)[:HISTORY_LIMIT]

    entries = []
    for interaction in recent:
        if interaction.get('search_query'):
            entries.append(f'Searched for "{interaction["search_query"]}"')
        elif interaction.get('product_id'):
            entries.append(f"Interacted with product ID {interaction['product_id']}")
        else:
            entries.append(f'Interaction of type "{interaction.get("interaction_type", "unknown")}"')
    return ", ".join(entries)


def describe_products(products: Iterable[Mapping[str, Any]]) -> str:
    return ". ".join(
        f"{p['title']} by {p['brand']}, {p['category']}, Price: {p['price']}, "
        f"Rating: {p['rating']}, Stock: {p['stock']}, ID: {p['id']}"
        for p in products
    )


def extract_product_ids(text: str) -> List[str]:
    """Product ids in the order the model listed them, without repeats."""
    seen = []
    for match in PRODUCT_ID_PATTERN.finditer(text):
        product_id = match.group(1)
        if product_id not in seen:
            seen.append(product_id)
    return seen


def moderation_prompt(query: str) -> str:
    return (
        "Evaluate the following user query to determine if it contains sensitive, inappropriate, "
        "or irrelevant content. Sensitive content includes explicit, violent, illegal or otherwise "
        "harmful material. If the query is sensitive or irrelevant to an online product catalog, "
        'respond with "No". If the query is appropriate and relevant, respond with "Yes". '
        f'Answer with a single word. The query is: "{query}"'
    )


def recommendation_prompt(query: str, interaction_history: str, product_descriptions: str) -> str:
    history = interaction_history or "no previous activity"
    return (
        f'Based on the user\'s query "{query}" and their recent interaction history, which includes '
        f"{history}, recommend the most relevant products strictly from the following options: "
        f"{product_descriptions}. Provide a concise list using product IDs for accurate "
        "identification: 1. Product ID: [productID1] 2. Product ID: [productID2], etc. "
        "Only recommend products listed above and add brief context for each one."
    )


class RecommendationService:
    def __init__(
        self,
        interaction_repo: InteractionRepository,
        product_repo: ProductRepository,
        completion_client: CompletionClient
    ):
        self.interaction_repo = interaction_repo
        self.product_repo = product_repo
        self.completion_client = completion_client

    async def is_query_appropriate(self, query: str) -> bool:
        answer = await self.completion_client.complete(moderation_prompt(query), temperature=0, max_tokens=10)
        return answer.strip().strip('."\'').lower() == "yes"

    async def get_recommendations(self, query: str) -> RecommendationResponse:
        """
        1. Ask the model whether the query is acceptable
        2. Load recent interactions and the catalog concurrently
        3. Ask for recommendations and keep only products that exist
        """
        query = (query or "").strip()
        if not query:
            raise InvalidArgumentError("Query is required.")

        if not await self.is_query_appropriate(query):
            logger.info("Recommendation query rejected by moderation")
            return RecommendationResponse(recommendation_text=REFUSAL_TEXT, recommended_products=[])

        with store_errors("load recommendation context"):
            interactions, products = await asyncio.gather(
                self.interaction_repo.get_recent(HISTORY_LIMIT),
                self.product_repo.get_all(),
            )

        prompt = recommendation_prompt(
            query,
            build_interaction_history(interactions),
            describe_products(products),
        )
        completion = await self.completion_client.complete(prompt)

        recommended = self._map_products(extract_product_ids(completion), products)
        if not recommended:
            return RecommendationResponse(recommendation_text=NO_MATCH_TEXT, recommended_products=[])

        text = "\n".join(f"{p['title']} by {p['brand']}, Price: {p['price']}" for p in recommended)
        return RecommendationResponse(
            recommendation_text=text,
            recommended_products=[ProductResponse(**p) for p in recommended],
        )

    @staticmethod
    def _map_products(product_ids: List[str], products: List[Dict]) -> List[Dict]:
        by_id = {str(p['id']): p for p in products}
        return [by_id[pid] for pid in product_ids if pid in by_id]
