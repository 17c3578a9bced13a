from sqlalchemy import Column, Integer, String, Float, DateTime, Text, func, text
from sqlalchemy.dialects.postgresql import UUID, JSONB

from .base import Base


class ProductDB(Base):
    """
    Catalog entry. Interaction rows reference it by ``id`` cast to text.
    """
    __tablename__ = 'products'

    id = Column(UUID(as_uuid=True), primary_key=True, server_default=text("gen_random_uuid()"))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    discount_percentage = Column(Float, nullable=False, server_default=text("0"))
    rating = Column(Float, nullable=False, server_default=text("0"))
    stock = Column(Integer, nullable=False, server_default=text("0"))
    brand = Column(String(255), nullable=False)
    category = Column(String(255), nullable=False)
    thumbnail = Column(String(1000), nullable=False)
    images = Column(JSONB, nullable=False, server_default=text("'[]'::jsonb"))  # ["https://...", ...]
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
