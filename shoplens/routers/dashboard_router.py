from typing import List

from fastapi import APIRouter, Depends, Query, Request

from ..dependencies import get_dashboard_service
from ..limiter import limiter
from ..schemas.dashboard import ConversionFunnel, InteractionTrend, MostInteractedProducts
from ..services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/interaction-trends", response_model=List[InteractionTrend])
@limiter.limit("30/minute")
async def get_interaction_trends(
    request: Request,
    last_hours: int = Query(24, alias="lastHours", ge=0, le=720),
    service: DashboardService = Depends(get_dashboard_service)
):
    """
    Hourly searches, views, clicks and time spent over the last ``lastHours`` hours
    """
    return await service.get_interaction_trends(last_hours)


@router.get("/most-interacted-products", response_model=MostInteractedProducts)
@limiter.limit("30/minute")
async def get_most_interacted_products(
    request: Request,
    service: DashboardService = Depends(get_dashboard_service)
):
    return await service.get_most_interacted_products()


@router.get("/conversion-funnel", response_model=ConversionFunnel)
@limiter.limit("30/minute")
async def get_conversion_funnel(
    request: Request,
    service: DashboardService = Depends(get_dashboard_service)
):
    """Search -> view -> click counts and total minutes spent"""
    return await service.get_conversion_funnel()
