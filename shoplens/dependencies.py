import asyncpg
import httpx
from fastapi import Depends

from .config import Settings, get_settings, settings
from .core.completion_client import CompletionClient
from .repositories.interaction_repository import InteractionRepository
from .repositories.product_repository import ProductRepository
from .services.dashboard_service import DashboardService
from .services.interaction_service import InteractionService
from .services.product_service import ProductService
from .services.recommendation_service import RecommendationService


# Global state for connections
class AppState:
    pg_pool: asyncpg.Pool = None
    http_client: httpx.AsyncClient = None


state = AppState()


async def init_resources():
    """Initialize all resources"""
    state.pg_pool = await asyncpg.create_pool(
        settings.POSTGRES_DSN,
        min_size=settings.DB_POOL_MIN_SIZE,
        max_size=settings.DB_POOL_MAX_SIZE,
        command_timeout=60
    )
    state.http_client = httpx.AsyncClient()


async def close_resources():
    """Close all resources"""
    if state.http_client:
        await state.http_client.aclose()
    if state.pg_pool:
        await state.pg_pool.close()


async def get_db_pool() -> asyncpg.Pool:
    return state.pg_pool


async def get_http_client() -> httpx.AsyncClient:
    return state.http_client


# Service wiring
def get_interaction_repository(
    db=Depends(get_db_pool),
    config: Settings = Depends(get_settings)
) -> InteractionRepository:
    return InteractionRepository(db, timeout=config.STORE_TIMEOUT_SECONDS)


def get_product_repository(
    db=Depends(get_db_pool),
    config: Settings = Depends(get_settings)
) -> ProductRepository:
    return ProductRepository(db, timeout=config.STORE_TIMEOUT_SECONDS)


def get_interaction_service(
    interaction_repo: InteractionRepository = Depends(get_interaction_repository),
    config: Settings = Depends(get_settings)
) -> InteractionService:
    return InteractionService(interaction_repo, policy=config.INTERACTION_RECORDING_POLICY)


def get_dashboard_service(
    interaction_repo: InteractionRepository = Depends(get_interaction_repository),
    product_repo: ProductRepository = Depends(get_product_repository)
) -> DashboardService:
    return DashboardService(interaction_repo, product_repo)


def get_product_service(
    product_repo: ProductRepository = Depends(get_product_repository),
    interaction_service: InteractionService = Depends(get_interaction_service)
) -> ProductService:
    return ProductService(product_repo, interaction_service)


def get_recommendation_service(
    interaction_repo: InteractionRepository = Depends(get_interaction_repository),
    product_repo: ProductRepository = Depends(get_product_repository),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    config: Settings = Depends(get_settings)
) -> RecommendationService:
    completion_client = CompletionClient(http_client, config.completion)
    return RecommendationService(interaction_repo, product_repo, completion_client)
