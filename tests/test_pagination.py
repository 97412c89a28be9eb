from __future__ import annotations

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from lessonbook.shared.pagination import (
    MAX_PAGE_SIZE,
    PaginationParams,
    build_page,
    get_pagination_params,
)


def test_build_page_flags_remaining_items() -> None:
    first = build_page(["a", "b"], total=5, params=PaginationParams(limit=2, offset=0))
    last = build_page(["e"], total=5, params=PaginationParams(limit=2, offset=4))

    assert first.has_more is True
    assert last.has_more is False
    assert last.offset == 4


def test_pagination_query_defaults_and_bounds() -> None:
    app = FastAPI()

    @app.get("/items")
    async def items(pagination: PaginationParams = Depends(get_pagination_params)) -> dict[str, int]:
        return pagination.model_dump()

    client = TestClient(app)

    assert client.get("/items").json() == {"limit": 50, "offset": 0}
    assert client.get("/items", params={"limit": MAX_PAGE_SIZE + 1}).status_code == 422
    assert client.get("/items", params={"offset": -1}).status_code == 422
