import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import uuid4

import pytest
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from taxonomy_api.auth import Admin, require_admin
from taxonomy_api.config import Settings
from taxonomy_api.main import create_app
from taxonomy_api.tables import CategoriesTable

TEST_DATABASE_URL = os.environ.get("DATABASE_URL") or (
    f"sqlite:///{Path(tempfile.gettempdir()) / f'taxonomy-test-{os.getpid()}.db'}"
)
TEST_ADMIN = Admin(subject="test-admin", email="admin@example.com")


@pytest.fixture(autouse=True, scope="session")
def anyio_backend():
    return ("asyncio", {"use_uvloop": True})


@pytest.fixture(scope="session")
def app():
    fastapi_app = create_app(
        Settings(database_url=TEST_DATABASE_URL, log_level="WARNING")
    )
    fastapi_app.dependency_overrides[require_admin] = lambda: TEST_ADMIN
    return fastapi_app


@pytest.fixture(scope="session")
async def async_client(app):
    async with LifespanManager(app):
        database = app.state.context.database
        await database.drop_all()
        await database.create_all()
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as client:
            yield client


@asynccontextmanager
async def get_test_session(app):
    async with app.state.context.database.session_scope() as session:
        yield session


def unique_name(label: str) -> str:
    return f"{label}-{uuid4().hex[:8]}"


async def create_category(async_client, name: str, **fields) -> dict:
    response = await async_client.post("/categories", json={"name": name, **fields})
    assert response.status_code == 201, response.text
    return response.json()


async def assert_tree_invariants(app) -> None:
    async with get_test_session(app) as session:
        result = await session.execute(select(CategoriesTable))
        categories = {category.id: category for category in result.scalars()}

    for category in categories.values():
        if category.parent_id is None:
            assert category.path == category.name
            assert category.level == 1
            continue
        parent = categories[category.parent_id]
        assert category.path == f"{parent.path}/{category.name}"
        assert category.level == parent.level + 1

        seen = {category.id}
        ancestor = parent
        while ancestor is not None:
            assert ancestor.id not in seen
            seen.add(ancestor.id)
            ancestor = categories.get(ancestor.parent_id) if ancestor.parent_id else None
