import os
import sys
import uuid
from pathlib import Path
from typing import AsyncIterator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from asgi_lifespan import LifespanManager

# Settings read at import time; set before any ladderboard module loads
os.environ.setdefault("APP_DEBUG", "true")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["HARDWARE_ENABLED"] = "false"

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))


@pytest.fixture(scope="session")
def test_db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest.fixture(scope="session")
def app(test_db_url: str):
    # Ensure env is set before importing the app
    os.environ["DATABASE_URL"] = test_db_url
    from ladderboard.main import app as litestar_app
    return litestar_app


@pytest_asyncio.fixture()
async def client(app) -> AsyncIterator[AsyncClient]:
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac


async def register(client: AsyncClient) -> dict:
    """Register a fresh account and return its bearer headers."""
    name = f"user-{uuid.uuid4().hex[:10]}"
    resp = await client.post(
        "/api/signup",
        json={"username": name, "email": f"{name}@example.com", "password": "secret123"},
    )
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def signup():
    return register


@pytest_asyncio.fixture()
async def auth_headers(client) -> dict:
    return await register(client)


@pytest_asyncio.fixture()
async def dual_game(client, auth_headers) -> str:
    """A dual game with Alice (player1) and Bob (player2) seated on square 1."""
    resp = await client.post("/api/mode-select", json={"mode": "dual"}, headers=auth_headers)
    assert resp.status_code == 200, resp.text
    game_id = resp.json()["game_id"]
    resp = await client.post(
        "/api/player-details",
        json={
            "player1": {"name": "Alice", "color": "#EF4444"},
            "player2": {"name": "Bob", "color": "#3B82F6"},
        },
        headers=auth_headers,
    )
    assert resp.status_code == 200, resp.text
    return game_id
