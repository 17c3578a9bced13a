from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import CamelModel


class ProductCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str
    price: float = Field(..., ge=0)
    discount_percentage: float = Field(0, ge=0, le=100)
    rating: float = Field(0, ge=0, le=5)
    stock: int = Field(0, ge=0)
    brand: str = Field(..., min_length=1, max_length=255)
    category: str = Field(..., min_length=1, max_length=255)
    thumbnail: str = Field(..., pattern=r"^https?://")
    images: List[str] = Field(default_factory=list)


class ProductUpdate(CamelModel):
    """Partial update; only fields present in the body are written"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    rating: Optional[float] = Field(None, ge=0, le=5)
    stock: Optional[int] = Field(None, ge=0)
    brand: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, min_length=1, max_length=255)
    thumbnail: Optional[str] = Field(None, pattern=r"^https?://")
    images: Optional[List[str]] = None


class ProductResponse(CamelModel):
    id: str
    title: str
    description: str
    price: float
    discount_percentage: float = 0.0
    rating: float = 0.0
    stock: int = 0
    brand: str
    category: str
    thumbnail: str
    images: List[str] = []
    created_at: Optional[datetime] = None


class PaginatedProducts(CamelModel):
    page: int
    limit: int
    total_documents: int
    total_pages: int
    data: List[ProductResponse]
