import pytest

from shoplens.config import settings
from shoplens.limiter import limiter


@pytest.fixture
def enabled_limiter():
    limiter.reset()
    limiter.enabled = True
    yield limiter
    limiter.enabled = False
    limiter.reset()


@pytest.mark.asyncio
async def test_default_limit_applies_to_undecorated_routes(client, mock_db_pool, enabled_limiter):
    mock_db_pool.fetchval.return_value = 0
    mock_db_pool.fetch.return_value = []
    allowed = int(settings.DEFAULT_RATE_LIMIT.split("/")[0])

    for _ in range(allowed):
        response = await client.get("/products")
        assert response.status_code == 200

    response = await client.get("/products")
    assert response.status_code == 429

    health = await client.get("/health")
    assert health.status_code == 200
