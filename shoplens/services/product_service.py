import logging
import math
from typing import Optional

from ..exceptions import InvalidArgumentError, NotFoundError, store_errors
from ..repositories.product_repository import ProductRepository, is_valid_product_id
from ..schemas.product import PaginatedProducts, ProductCreate, ProductResponse, ProductUpdate
from .interaction_service import InteractionService

logger = logging.getLogger(__name__)


class ProductService:
    """
    Catalog CRUD. Reads made on behalf of a session are tracked as
    search and view interactions.
    """
    def __init__(self, product_repo: ProductRepository, interaction_service: InteractionService):
        self.product_repo = product_repo
        self.interaction_service = interaction_service

    async def create(self, product: ProductCreate) -> ProductResponse:
        with store_errors("create product"):
            row = await self.product_repo.create(product.model_dump())
        return ProductResponse(**row)

    async def find_all(
        self,
        page: int = 1,
        limit: int = 10,
        search: str = "",
        session_id: Optional[str] = None
    ) -> PaginatedProducts:
        search = (search or "").strip()
        offset = (page - 1) * limit

        with store_errors("list products"):
            total = await self.product_repo.count(search or None)
            rows = await self.product_repo.get_paginated(limit, offset, search or None)

        if search and session_id:
            await self.interaction_service.record_search(session_id, search)

        return PaginatedProducts(
            page=page,
            limit=limit,
            total_documents=total,
            total_pages=math.ceil(total / limit) if limit else 0,
            data=[ProductResponse(**row) for row in rows],
        )

    async def find_one(self, product_id: str, session_id: Optional[str] = None) -> ProductResponse:
        self._check_id(product_id)
        with store_errors("retrieve product"):
            row = await self.product_repo.get_by_id(product_id)
        if row is None:
            raise NotFoundError(f"Product with ID {product_id} not found")

        if session_id:
            await self.interaction_service.record_view(session_id, product_id)
        return ProductResponse(**row)

    async def update(self, product_id: str, changes: ProductUpdate) -> ProductResponse:
        self._check_id(product_id)
        fields = changes.model_dump(exclude_unset=True)
        for name, value in fields.items():
            if value is None:
                raise InvalidArgumentError(f"Field {name} cannot be null")

        with store_errors("update product"):
            row = await self.product_repo.update(product_id, fields)
        if row is None:
            raise NotFoundError(f"Product with ID {product_id} not found")
        return ProductResponse(**row)

    async def delete(self, product_id: str) -> ProductResponse:
        self._check_id(product_id)
        with store_errors("delete product"):
            row = await self.product_repo.delete(product_id)
        if row is None:
            raise NotFoundError(f"Product with ID {product_id} not found")
        return ProductResponse(**row)

    @staticmethod
    def _check_id(product_id: str):
        if not is_valid_product_id(product_id):
            raise InvalidArgumentError("Invalid product ID format")
