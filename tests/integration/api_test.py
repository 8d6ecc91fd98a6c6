from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from fastapi import status

import clanhub.settings
from clanhub.api.init_api import init_api
from clanhub.constants.privileges import ClanRank
from clanhub.objects.clan import Clan
from clanhub.objects.collections import Channels
from clanhub.objects.user import User
from clanhub.usecases.clans import ClanRegistry


@pytest.fixture
async def app(db_dsn: str, monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[FastAPI]:
    monkeypatch.setattr(clanhub.settings, "DB_DSN", db_dsn)

    asgi_app = init_api()
    async with LifespanManager(
        asgi_app,
        startup_timeout=None,
        shutdown_timeout=None,
    ):
        yield asgi_app


@pytest.fixture
async def http_client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def app_registry(app: FastAPI) -> ClanRegistry:
    registry: ClanRegistry = app.state.registry
    return registry


async def test_get_clan(
    http_client: httpx.AsyncClient,
    app_registry: ClanRegistry,
    admin: User,
    alice: User,
) -> None:
    # ARRANGE
    assert isinstance(await app_registry.create_clan(admin, "Foo", "alice"), Clan)
    await app_registry.add_member(alice, "foo", "bob", ClanRank.SENIOR)
    await app_registry.set_clan_description(alice, "foo", "hello")

    # ACT
    response = await http_client.get("/v2/clans/Foo")

    # ASSERT
    assert response.status_code == status.HTTP_200_OK

    body = response.json()
    assert body["status"] == "success"
    assert body["meta"] == {}

    data = body["data"]
    assert data["id"] == "foo"
    assert data["name"] == "Foo"
    assert data["leader"] == "alice"
    assert data["points"] == 1000
    assert data["icon"] is None
    assert data["description"] == "hello"
    assert [(m["id"], m["rank"], m["rank_name"]) for m in data["members"]] == [
        ("alice", 5, "Leader"),
        ("bob", 3, "Senior"),
    ]


async def test_get_unknown_clan(http_client: httpx.AsyncClient) -> None:
    response = await http_client.get("/v2/clans/nope")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {
        "status": "error",
        "error": 'Clan "nope" not found.',
        "error_code": "unknown_clan",
    }


async def test_get_clans(
    http_client: httpx.AsyncClient,
    app_registry: ClanRegistry,
    admin: User,
) -> None:
    for name in ("Charlie", "Alpha", "Bravo"):
        assert isinstance(await app_registry.create_clan(admin, name, "alice"), Clan)

    response = await http_client.get("/v2/clans", params={"page": 2, "page_size": 2})

    assert response.status_code == status.HTTP_200_OK

    body = response.json()
    assert [clan["name"] for clan in body["data"]] == ["Charlie"]
    assert body["meta"] == {"total": 3, "page": 2, "page_size": 2}


async def test_get_clans_validates_paging(http_client: httpx.AsyncClient) -> None:
    response = await http_client.get("/v2/clans", params={"page": 0})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


async def test_clan_channels_survive_restart(
    db_dsn: str,
    monkeypatch: pytest.MonkeyPatch,
    admin: User,
) -> None:
    monkeypatch.setattr(clanhub.settings, "DB_DSN", db_dsn)

    first_app = init_api()
    async with LifespanManager(first_app, startup_timeout=None, shutdown_timeout=None):
        registry: ClanRegistry = first_app.state.registry
        assert isinstance(await registry.create_clan(admin, "Foo", "alice"), Clan)

    second_app = init_api()
    async with LifespanManager(second_app, startup_timeout=None, shutdown_timeout=None):
        channels: Channels = second_app.state.channels
        assert channels.exists("foo")

        channel = channels.get_by_id("foo")
        assert channel is not None
        assert channel.title == "Foo"
        assert channel.auth == {"alice": "#"}

        registry = second_app.state.registry
        assert await registry.restore_channels() == 0

        assert isinstance(await registry.delete_clan(admin, "foo"), Clan)
        assert not channels.exists("foo")
