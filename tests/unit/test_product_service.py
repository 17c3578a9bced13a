import pytest
from unittest.mock import AsyncMock

from conftest import PRODUCT_ID, product_row
from shoplens.exceptions import InvalidArgumentError, NotFoundError
from shoplens.repositories.product_repository import ProductRepository
from shoplens.schemas.product import ProductCreate, ProductUpdate
from shoplens.services.interaction_service import InteractionService
from shoplens.services.product_service import ProductService


@pytest.fixture
def mock_product_repo():
    repo = AsyncMock(spec=ProductRepository)
    repo.get_by_id.return_value = product_row()
    repo.count.return_value = 21
    repo.get_paginated.return_value = [product_row()]
    return repo


@pytest.fixture
def mock_interaction_service():
    return AsyncMock(spec=InteractionService)


@pytest.fixture
def service(mock_product_repo, mock_interaction_service):
    return ProductService(mock_product_repo, mock_interaction_service)


@pytest.mark.asyncio
async def test_find_one_rejects_malformed_id(service, mock_product_repo):
    with pytest.raises(InvalidArgumentError):
        await service.find_one("not-a-uuid")
    mock_product_repo.get_by_id.assert_not_called()


@pytest.mark.asyncio
async def test_find_one_missing_product(service, mock_product_repo, mock_interaction_service):
    mock_product_repo.get_by_id.return_value = None

    with pytest.raises(NotFoundError):
        await service.find_one(PRODUCT_ID, session_id="session-1")
    mock_interaction_service.record_view.assert_not_called()


@pytest.mark.asyncio
async def test_find_one_records_view_for_session(service, mock_interaction_service):
    product = await service.find_one(PRODUCT_ID, session_id="session-1")

    assert product.title == "Trail Runner 2"
    mock_interaction_service.record_view.assert_awaited_once_with("session-1", PRODUCT_ID)


@pytest.mark.asyncio
async def test_find_one_without_session_records_nothing(service, mock_interaction_service):
    await service.find_one(PRODUCT_ID)
    mock_interaction_service.record_view.assert_not_called()


@pytest.mark.asyncio
async def test_find_all_paginates(service, mock_product_repo):
    page = await service.find_all(page=3, limit=10)

    assert (page.page, page.limit, page.total_documents, page.total_pages) == (3, 10, 21, 3)
    mock_product_repo.get_paginated.assert_awaited_once_with(10, 20, None)


@pytest.mark.asyncio
@pytest.mark.parametrize("search, session_id, recorded", [
    ("red shoes", "session-1", True),
    ("red shoes", None, False),
    ("   ", "session-1", False),
])
async def test_find_all_records_search_only_with_query_and_session(
    service, mock_interaction_service, search, session_id, recorded
):
    await service.find_all(search=search, session_id=session_id)

    if recorded:
        mock_interaction_service.record_search.assert_awaited_once_with("session-1", "red shoes")
    else:
        mock_interaction_service.record_search.assert_not_called()


@pytest.mark.asyncio
async def test_create_passes_all_fields(service, mock_product_repo):
    mock_product_repo.create.return_value = product_row()
    payload = ProductCreate(
        title="Trail Runner 2",
        description="Lightweight trail running shoe",
        price=129.99,
        brand="Northpeak",
        category="shoes",
        thumbnail="https://cdn.example.com/trail-runner/thumb.jpg",
    )

    created = await service.create(payload)

    assert created.id == PRODUCT_ID
    fields = mock_product_repo.create.call_args.args[0]
    assert fields["images"] == []
    assert fields["stock"] == 0


@pytest.mark.asyncio
async def test_update_writes_only_supplied_fields(service, mock_product_repo):
    mock_product_repo.update.return_value = product_row(price=99.0)

    updated = await service.update(PRODUCT_ID, ProductUpdate(price=99.0))

    assert updated.price == 99.0
    mock_product_repo.update.assert_awaited_once_with(PRODUCT_ID, {"price": 99.0})


@pytest.mark.asyncio
async def test_update_rejects_explicit_null(service, mock_product_repo):
    with pytest.raises(InvalidArgumentError):
        await service.update(PRODUCT_ID, ProductUpdate(title=None))
    mock_product_repo.update.assert_not_called()


@pytest.mark.asyncio
async def test_delete_missing_product(service, mock_product_repo):
    mock_product_repo.delete.return_value = None

    with pytest.raises(NotFoundError):
        await service.delete(PRODUCT_ID)
