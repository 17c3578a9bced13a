import json
import uuid
from typing import List, Dict, Optional, Any, Iterable
from asyncpg import Pool

PRODUCT_COLUMNS = """
    id::text AS id, title, description, price, discount_percentage, rating,
    stock, brand, category, thumbnail, images, created_at
"""

SEARCH_FILTER = """
    WHERE title ILIKE $1
       OR description ILIKE $1
       OR brand ILIKE $1
       OR category ILIKE $1
"""


def canonical_product_id(product_id: Optional[str]) -> Optional[str]:
    """
    Hyphenated lowercase form of a UUID product id, or None when it is not one.
    Braced, urn:uuid: and unhyphenated spellings are accepted; asyncpg only
    encodes the canonical form.
    """
    if not product_id or not isinstance(product_id, str):
        return None
    try:
        return str(uuid.UUID(product_id))
    except ValueError:
        return None


def is_valid_product_id(product_id: Optional[str]) -> bool:
    return canonical_product_id(product_id) is not None


def _row_to_product(row) -> Dict[str, Any]:
    product = dict(row)
    images = product.get('images')
    product['images'] = json.loads(images) if isinstance(images, str) else (images or [])
    return product


def _like_pattern(search: str) -> str:
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ProductRepository:
    def __init__(self, db: Pool, timeout: Optional[float] = None):
        self.db = db
        self.timeout = timeout

    async def create(self, fields: Dict[str, Any]) -> Dict:
        query = f"""
            INSERT INTO products (
                title, description, price, discount_percentage, rating,
                stock, brand, category, thumbnail, images, created_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10::jsonb, NOW())
            RETURNING {PRODUCT_COLUMNS}
        """
        row = await self.db.fetchrow(
            query,
            fields['title'],
            fields['description'],
            fields['price'],
            fields['discount_percentage'],
            fields['rating'],
            fields['stock'],
            fields['brand'],
            fields['category'],
            fields['thumbnail'],
            json.dumps(fields.get('images', [])),
            timeout=self.timeout
        )
        return _row_to_product(row)

    async def get_by_id(self, product_id: str) -> Optional[Dict]:
        query = f"SELECT {PRODUCT_COLUMNS} FROM products WHERE id = $1::uuid"
        row = await self.db.fetchrow(query, canonical_product_id(product_id), timeout=self.timeout)
        return _row_to_product(row) if row else None

    async def count(self, search: Optional[str] = None) -> int:
        if search:
            query = f"SELECT COUNT(*) FROM products {SEARCH_FILTER}"
            total = await self.db.fetchval(query, _like_pattern(search), timeout=self.timeout)
        else:
            total = await self.db.fetchval("SELECT COUNT(*) FROM products", timeout=self.timeout)
        return total or 0

    async def get_paginated(self, limit: int, offset: int, search: Optional[str] = None) -> List[Dict]:
        if search:
            query = f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                {SEARCH_FILTER}
                ORDER BY created_at DESC, id
                LIMIT $2 OFFSET $3
            """
            rows = await self.db.fetch(query, _like_pattern(search), limit, offset, timeout=self.timeout)
        else:
            query = f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                ORDER BY created_at DESC, id
                LIMIT $1 OFFSET $2
            """
            rows = await self.db.fetch(query, limit, offset, timeout=self.timeout)

        return [_row_to_product(row) for row in rows]

    async def get_all(self) -> List[Dict]:
        rows = await self.db.fetch(f"SELECT {PRODUCT_COLUMNS} FROM products ORDER BY title", timeout=self.timeout)
        return [_row_to_product(row) for row in rows]

    async def update(self, product_id: str, fields: Dict[str, Any]) -> Optional[Dict]:
        if not fields:
            return await self.get_by_id(product_id)

        assignments = []
        values = []
        for position, (column, value) in enumerate(fields.items(), start=2):
            if column == 'images':
                assignments.append(f"{column} = ${position}::jsonb")
                values.append(json.dumps(value))
            else:
                assignments.append(f"{column} = ${position}")
                values.append(value)

        query = f"""
            UPDATE products
            SET {', '.join(assignments)}
            WHERE id = $1::uuid
            RETURNING {PRODUCT_COLUMNS}
        """
        row = await self.db.fetchrow(query, canonical_product_id(product_id), *values, timeout=self.timeout)
        return _row_to_product(row) if row else None

    async def delete(self, product_id: str) -> Optional[Dict]:
        query = f"DELETE FROM products WHERE id = $1::uuid RETURNING {PRODUCT_COLUMNS}"
        row = await self.db.fetchrow(query, canonical_product_id(product_id), timeout=self.timeout)
        return _row_to_product(row) if row else None

    async def get_titles_by_ids(self, product_ids: Iterable[Optional[str]]) -> Dict[str, str]:
        """
        Map each resolvable product id to its title. Ids that are malformed or
        not in the catalog are simply absent from the result.
        """
        # recorded id -> canonical id
        canonical = {}
        for pid in product_ids:
            canonical_id = canonical_product_id(pid)
            if canonical_id is not None:
                canonical[pid] = canonical_id
        if not canonical:
            return {}

        query = """
            SELECT id::text AS id, title
            FROM products
            WHERE id = ANY($1::uuid[])
        """
        rows = await self.db.fetch(query, sorted(set(canonical.values())), timeout=self.timeout)
        titles = {row['id']: row['title'] for row in rows}
        # callers look up by the id exactly as it was recorded
        return {pid: titles[canonical_id] for pid, canonical_id in canonical.items() if canonical_id in titles}
