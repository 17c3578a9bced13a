import asyncio
import json
import logging
from typing import List

import asyncpg
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateIndex, CreateTable

from .config import RecordingPolicy, settings
from .logging_config import setup_logging
from .models.base import Base
from .models.interaction import MERGE_KEY_INDEX_NAME
from .models import product  # noqa: F401  registers the products table

logger = logging.getLogger(__name__)

# Sample catalog
PRODUCTS = [
    {
        "title": "Trail Runner 2",
        "description": "Lightweight trail running shoe with a grippy outsole and breathable mesh upper.",
        "price": 129.99,
        "discount_percentage": 10,
        "rating": 4.6,
        "stock": 42,
        "brand": "Northpeak",
        "category": "shoes",
        "thumbnail": "https://cdn.example.com/products/trail-runner-2/thumb.jpg",
        "images": ["https://cdn.example.com/products/trail-runner-2/1.jpg"],
    },
    {
        "title": "Classic Red Sneaker",
        "description": "Canvas low-top sneaker in bright red with a vulcanised rubber sole.",
        "price": 59.0,
        "discount_percentage": 0,
        "rating": 4.2,
        "stock": 120,
        "brand": "Everstep",
        "category": "shoes",
        "thumbnail": "https://cdn.example.com/products/classic-red/thumb.jpg",
        "images": [],
    },
    {
        "title": "Noise Cancelling Headphones",
        "description": "Over-ear wireless headphones with 30 hour battery life and active noise cancelling.",
        "price": 249.5,
        "discount_percentage": 15,
        "rating": 4.7,
        "stock": 18,
        "brand": "Sonora",
        "category": "electronics",
        "thumbnail": "https://cdn.example.com/products/nc-headphones/thumb.jpg",
        "images": ["https://cdn.example.com/products/nc-headphones/1.jpg"],
    },
    {
        "title": "Stainless Steel Water Bottle",
        "description": "Insulated 750ml bottle that keeps drinks cold for 24 hours.",
        "price": 24.99,
        "discount_percentage": 5,
        "rating": 4.5,
        "stock": 300,
        "brand": "Hydra",
        "category": "outdoors",
        "thumbnail": "https://cdn.example.com/products/bottle/thumb.jpg",
        "images": [],
    },
]


def schema_statements(policy: RecordingPolicy) -> List[str]:
    """
    PostgreSQL DDL for every mapped table and its indexes. The merge-key unique
    index is only emitted for the merge policy; it would reject repeats under append.
    """
    dialect = postgresql.dialect()
    statements = []
    for table in Base.metadata.sorted_tables:
        statements.append(str(CreateTable(table, if_not_exists=True).compile(dialect=dialect)))
        for index in sorted(table.indexes, key=lambda idx: idx.name):
            if index.name == MERGE_KEY_INDEX_NAME and policy != RecordingPolicy.MERGE:
                continue
            statements.append(str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect)))
    return statements


async def seed_data():
    logger.info("Starting data seeding")

    conn = await asyncpg.connect(settings.POSTGRES_DSN)
    try:
        for statement in schema_statements(settings.INTERACTION_RECORDING_POLICY):
            await conn.execute(statement)
        logger.info("Schema ready", extra={"policy": settings.INTERACTION_RECORDING_POLICY.value})

        inserted = 0
        for item in PRODUCTS:
            exists = await conn.fetchval("SELECT 1 FROM products WHERE title = $1", item["title"])
            if exists:
                continue
            await conn.execute("""
                INSERT INTO products (
                    title, description, price, discount_percentage, rating,
                    stock, brand, category, thumbnail, images
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10::jsonb)
            """,
            item["title"],
            item["description"],
            item["price"],
            item["discount_percentage"],
            item["rating"],
            item["stock"],
            item["brand"],
            item["category"],
            item["thumbnail"],
            json.dumps(item["images"])
            )
            inserted += 1
        logger.info(f"Inserted {inserted} of {len(PRODUCTS)} sample products")
    finally:
        await conn.close()


def main():
    setup_logging(settings.LOG_LEVEL)
    asyncio.run(seed_data())


if __name__ == "__main__":
    main()
