import os
from datetime import datetime, timedelta, timezone

import asyncpg
import pytest
import pytest_asyncio

from conftest import PRODUCT_ID
from shoplens.config import RecordingPolicy
from shoplens.repositories.interaction_repository import InteractionRepository
from shoplens.repositories.product_repository import ProductRepository
from shoplens.seed_data import PRODUCTS, schema_statements
from shoplens.services.dashboard_service import UNKNOWN_PRODUCT, DashboardService, utc_now
from shoplens.services.interaction_service import InteractionService

POSTGRES_IMAGE = "postgres:16-alpine"


@pytest.fixture(scope="module")
def postgres_dsn():
    """
    SHOPLENS_TEST_POSTGRES_DSN when set, otherwise a throwaway container.
    """
    dsn = os.getenv("SHOPLENS_TEST_POSTGRES_DSN")
    if dsn:
        yield dsn
        return

    postgres = pytest.importorskip("testcontainers.postgres")
    container = postgres.PostgresContainer(POSTGRES_IMAGE)
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"PostgreSQL container unavailable: {e}")

    try:
        host = container.get_container_host_ip()
        port = container.get_exposed_port(5432)
        yield f"postgresql://{container.username}:{container.password}@{host}:{port}/{container.dbname}"
    finally:
        container.stop()


async def reset_schema(pool, policy: RecordingPolicy):
    async with pool.acquire() as conn:
        await conn.execute("DROP TABLE IF EXISTS user_interactions, products")
        for statement in schema_statements(policy):
            await conn.execute(statement)


@pytest_asyncio.fixture
async def pg_pool(postgres_dsn):
    pool = await asyncpg.create_pool(postgres_dsn, min_size=1, max_size=2)
    await reset_schema(pool, RecordingPolicy.MERGE)
    yield pool
    await pool.close()


def _services(pool, policy=RecordingPolicy.MERGE, clock=utc_now):
    interaction_repo = InteractionRepository(pool, timeout=10)
    product_repo = ProductRepository(pool, timeout=10)
    recorder = InteractionService(interaction_repo, policy=policy)
    dashboard = DashboardService(interaction_repo, product_repo, clock=clock)
    return recorder, dashboard, interaction_repo, product_repo


@pytest.mark.asyncio
async def test_merge_collapses_repeats_and_accumulates_time(pg_pool):
    recorder, dashboard, _, _ = _services(pg_pool)

    await recorder.record_search("session-1", "red shoes")
    second = await recorder.record_search("session-1", "red shoes")
    await recorder.record_click("session-1", PRODUCT_ID)
    await recorder.record_time_spent("session-1", PRODUCT_ID, 45)
    await recorder.record_time_spent("session-1", PRODUCT_ID, 30)

    assert second.count == 2

    searches = await pg_pool.fetch(
        "SELECT count, search_query FROM user_interactions WHERE interaction_type = 'search'"
    )
    assert [(r["count"], r["search_query"]) for r in searches] == [(2, "red shoes")]

    time_rows = await pg_pool.fetch(
        "SELECT count, time_spend FROM user_interactions WHERE interaction_type = 'time_spend'"
    )
    assert [(r["count"], r["time_spend"]) for r in time_rows] == [(2, 75.0)]

    funnel = await dashboard.get_conversion_funnel()
    assert funnel.model_dump() == {"searches": 2, "views": 0, "clicks": 1, "total_time_spent": 1}


@pytest.mark.asyncio
async def test_append_policy_keeps_every_event(pg_pool):
    await reset_schema(pg_pool, RecordingPolicy.APPEND)
    recorder, dashboard, _, _ = _services(pg_pool, policy=RecordingPolicy.APPEND)

    await recorder.record_search("session-1", "red shoes")
    await recorder.record_search("session-1", "red shoes")

    rows = await pg_pool.fetch("SELECT count FROM user_interactions")
    assert [r["count"] for r in rows] == [1, 1]
    assert (await dashboard.get_conversion_funnel()).searches == 2


@pytest.mark.asyncio
async def test_trends_place_events_in_their_hour_bucket(pg_pool):
    recorder, _, interaction_repo, _ = _services(pg_pool)

    await recorder.record_search("session-1", "red shoes")
    await recorder.record_search("session-1", "red shoes")
    await recorder.record_click("session-1", PRODUCT_ID)
    await recorder.record_time_spent("session-1", PRODUCT_ID, 45)

    now = datetime.now(timezone.utc) + timedelta(seconds=1)
    await interaction_repo.upsert("session-2", "search", None, "headphones", None, now - timedelta(minutes=90))
    await interaction_repo.upsert("session-3", "view", PRODUCT_ID, None, None, now - timedelta(hours=5))

    _, dashboard, _, _ = _services(pg_pool, clock=lambda: now)
    trends = await dashboard.get_interaction_trends(3)

    by_start = {t.bucket_start: t for t in trends}
    assert sorted(by_start) == [now - timedelta(hours=h) for h in (3, 2, 1)]

    oldest = by_start[now - timedelta(hours=3)]
    middle = by_start[now - timedelta(hours=2)]
    newest = by_start[now - timedelta(hours=1)]
    assert (oldest.searches, oldest.views, oldest.clicks, oldest.time_spend) == (0, 0, 0, 0.0)
    assert (middle.searches, middle.views, middle.clicks, middle.time_spend) == (1, 0, 0, 0.0)
    assert (newest.searches, newest.views, newest.clicks, newest.time_spend) == (2, 0, 1, 45.0)


@pytest.mark.asyncio
async def test_leaderboard_resolves_any_uuid_spelling(pg_pool):
    recorder, dashboard, _, product_repo = _services(pg_pool)
    product = await product_repo.create(PRODUCTS[0])
    braced = "{%s}" % product["id"]

    await recorder.record_click("session-1", braced)
    await recorder.record_click("session-2", braced)
    await recorder.record_view("session-1", "urn:uuid:0b9f4c1d-0000-4000-8000-000000000000")
    await recorder.record_view("session-1", "legacy-id")

    leaderboard = await dashboard.get_most_interacted_products()

    names = {row.product_id: (row.name, row.total_interactions) for row in leaderboard.products}
    assert names == {
        braced: (PRODUCTS[0]["title"], 2),
        "urn:uuid:0b9f4c1d-0000-4000-8000-000000000000": (UNKNOWN_PRODUCT, 1),
        "legacy-id": (UNKNOWN_PRODUCT, 1),
    }
    assert (await product_repo.get_by_id(braced))["id"] == product["id"]
