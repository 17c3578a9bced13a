from fastapi import APIRouter, Depends, Request, status

from ..dependencies import get_interaction_service
from ..limiter import limiter
from ..schemas.interaction import InteractionCreate, InteractionRecord
from ..services.interaction_service import InteractionService

router = APIRouter(tags=["Interactions"])


@router.post("/interactions", response_model=InteractionRecord, status_code=status.HTTP_201_CREATED)
@limiter.limit("100/minute")
async def log_interaction(
    body: InteractionCreate,
    request: Request,
    service: InteractionService = Depends(get_interaction_service)
):
    """
    Generic event intake for search, view, click and time_spend interactions
    """
    return await service.record_interaction(
        body.session_id,
        body.interaction_type,
        product_id=body.product_id,
        search_query=body.search_query,
        time_spend=body.time_spend,
    )
