from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from ..dependencies import get_interaction_service, get_product_service, get_recommendation_service
from ..limiter import limiter
from ..schemas.interaction import InteractionRecord, TrackClickRequest, TrackTimeSpentRequest
from ..schemas.product import PaginatedProducts, ProductCreate, ProductResponse, ProductUpdate
from ..schemas.recommendation import RecommendationResponse
from ..services.interaction_service import InteractionService
from ..services.product_service import ProductService
from ..services.recommendation_service import RecommendationService

router = APIRouter(prefix="/products", tags=["Products"])


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product: ProductCreate,
    service: ProductService = Depends(get_product_service)
):
    return await service.create(product)


@router.get("", response_model=PaginatedProducts)
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = "",
    session_id: Optional[str] = Query(None, alias="sessionId"),
    service: ProductService = Depends(get_product_service)
):
    """
    Browse the catalog. A non-empty ``search`` with a ``sessionId`` is tracked as a search.
    """
    return await service.find_all(page, limit, search, session_id)


# Declared before /{product_id} so the literal path wins
@router.get("/recommendations", response_model=RecommendationResponse)
@limiter.limit("10/minute")
async def get_recommendations(
    request: Request,
    query: str = "",
    service: RecommendationService = Depends(get_recommendation_service)
):
    """
    AI product recommendations conditioned on recent interactions
    """
    return await service.get_recommendations(query)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    session_id: Optional[str] = Query(None, alias="sessionId"),
    service: ProductService = Depends(get_product_service)
):
    return await service.find_one(product_id, session_id)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    changes: ProductUpdate,
    service: ProductService = Depends(get_product_service)
):
    return await service.update(product_id, changes)


@router.delete("/{product_id}", response_model=ProductResponse)
async def delete_product(
    product_id: str,
    service: ProductService = Depends(get_product_service)
):
    return await service.delete(product_id)


@router.post("/{product_id}/click", response_model=InteractionRecord, status_code=status.HTTP_201_CREATED)
@limiter.limit("100/minute")
async def track_click(
    product_id: str,
    body: TrackClickRequest,
    request: Request,
    service: InteractionService = Depends(get_interaction_service)
):
    return await service.record_click(body.session_id, product_id)


@router.post("/{product_id}/time-spend", response_model=InteractionRecord, status_code=status.HTTP_201_CREATED)
@limiter.limit("100/minute")
async def track_time_spent(
    product_id: str,
    body: TrackTimeSpentRequest,
    request: Request,
    service: InteractionService = Depends(get_interaction_service)
):
    return await service.record_time_spent(body.session_id, product_id, body.time_spend)
