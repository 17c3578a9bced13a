from datetime import datetime
from typing import List, Dict, Optional, Sequence
from asyncpg import Pool

from ..models.interaction import MERGE_CONFLICT_TARGET

RECORD_COLUMNS = "id, session_id, interaction_type, product_id, search_query, time_spend, count, timestamp"


class InteractionRepository:
    """
    Queries against ``user_interactions``. Every report sums ``count``,
    which is 1 on each row written under the append policy.
    """
    def __init__(self, db: Pool, timeout: Optional[float] = None):
        self.db = db
        self.timeout = timeout

    async def insert(
        self,
        session_id: str,
        interaction_type: str,
        product_id: Optional[str],
        search_query: Optional[str],
        time_spend: Optional[float],
        timestamp: datetime
    ) -> Dict:
        query = f"""
            INSERT INTO user_interactions (
                session_id,
                interaction_type,
                product_id,
                search_query,
                time_spend,
                count,
                timestamp
            ) VALUES ($1, $2, $3, $4, $5, 1, $6)
            RETURNING {RECORD_COLUMNS}
        """
        row = await self.db.fetchrow(
            query,
            session_id,
            interaction_type,
            product_id,
            search_query,
            time_spend,
            timestamp,
            timeout=self.timeout
        )
        return dict(row)

    async def upsert(
        self,
        session_id: str,
        interaction_type: str,
        product_id: Optional[str],
        search_query: Optional[str],
        time_spend: Optional[float],
        timestamp: datetime
    ) -> Dict:
        """
        Insert a new row with count = 1, or atomically bump the counter of the
        row sharing the merge key. time_spend accumulates across merges.
        """
        query = f"""
            INSERT INTO user_interactions AS ui (
                session_id,
                interaction_type,
                product_id,
                search_query,
                time_spend,
                count,
                timestamp
            ) VALUES ($1, $2, $3, $4, $5, 1, $6)
            ON CONFLICT {MERGE_CONFLICT_TARGET}
            DO UPDATE SET
                count = ui.count + 1,
                timestamp = EXCLUDED.timestamp,
                time_spend = CASE
                    WHEN EXCLUDED.time_spend IS NULL THEN ui.time_spend
                    ELSE COALESCE(ui.time_spend, 0) + EXCLUDED.time_spend
                END
            RETURNING {RECORD_COLUMNS}
        """
        row = await self.db.fetchrow(
            query,
            session_id,
            interaction_type,
            product_id,
            search_query,
            time_spend,
            timestamp,
            timeout=self.timeout
        )
        return dict(row)

    async def get_recent(self, limit: int) -> List[Dict]:
        query = f"""
            SELECT {RECORD_COLUMNS}
            FROM user_interactions
            ORDER BY timestamp DESC
            LIMIT $1
        """
        rows = await self.db.fetch(query, limit, timeout=self.timeout)
        return [dict(row) for row in rows]

    async def get_hourly_totals(self, boundaries: Sequence[datetime]) -> List[Dict]:
        """
        Per-bucket totals for events in [boundaries[0], boundaries[-1]).
        ``bucket`` is 1-based: bucket i covers [boundaries[i-1], boundaries[i]).
        """
        query = """
            SELECT
                width_bucket(timestamp, $1::timestamptz[]) AS bucket,
                COALESCE(SUM(count) FILTER (WHERE interaction_type = 'search'), 0) AS searches,
                COALESCE(SUM(count) FILTER (WHERE interaction_type = 'view'), 0) AS views,
                COALESCE(SUM(count) FILTER (WHERE interaction_type = 'click'), 0) AS clicks,
                COALESCE(SUM(time_spend) FILTER (WHERE interaction_type = 'time_spend'), 0) AS time_spend
            FROM user_interactions
            WHERE timestamp >= $2 AND timestamp < $3
            GROUP BY bucket
            ORDER BY bucket
        """
        rows = await self.db.fetch(
            query,
            list(boundaries),
            boundaries[0],
            boundaries[-1],
            timeout=self.timeout
        )
        return [dict(row) for row in rows]

    async def get_search_totals(self) -> List[Dict]:
        query = """
            SELECT
                search_query AS name,
                SUM(count) AS total_interactions
            FROM user_interactions
            WHERE interaction_type = 'search'
            GROUP BY search_query
            ORDER BY total_interactions DESC, search_query
        """
        rows = await self.db.fetch(query, timeout=self.timeout)
        return [dict(row) for row in rows]

    async def get_product_totals(self, interaction_types: Sequence[str]) -> List[Dict]:
        query = """
            SELECT
                product_id,
                SUM(count) AS total_interactions,
                COALESCE(SUM(count) FILTER (WHERE interaction_type = 'click'), 0) AS total_clicks,
                COALESCE(SUM(time_spend) FILTER (WHERE interaction_type = 'time_spend'), 0) AS total_time_spent
            FROM user_interactions
            WHERE interaction_type = ANY($1::varchar[])
            GROUP BY product_id
            ORDER BY total_interactions DESC, product_id
        """
        rows = await self.db.fetch(query, list(interaction_types), timeout=self.timeout)
        return [dict(row) for row in rows]

    async def get_funnel_totals(self) -> Dict:
        query = """
            SELECT
                COALESCE(SUM(count) FILTER (WHERE interaction_type = 'search'), 0) AS searches,
                COALESCE(SUM(count) FILTER (WHERE interaction_type = 'view'), 0) AS views,
                COALESCE(SUM(count) FILTER (WHERE interaction_type = 'click'), 0) AS clicks,
                COALESCE(SUM(time_spend) FILTER (WHERE interaction_type = 'time_spend'), 0) AS total_time_spent
            FROM user_interactions
        """
        row = await self.db.fetchrow(query, timeout=self.timeout)
        return dict(row) if row else {'searches': 0, 'views': 0, 'clicks': 0, 'total_time_spent': 0}
