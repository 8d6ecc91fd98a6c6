from __future__ import annotations

import pytest

from clanhub.adapters.database import Database
from clanhub.constants.privileges import ClanRank
from clanhub.objects.clan import Clan
from clanhub.objects.clan import ClanMember
from clanhub.repositories.clans import ClanStore
from clanhub.repositories.clans import PersistenceError


def make_clan(id: str = "foo", name: str = "Foo") -> Clan:
    return Clan(
        id=id,
        name=name,
        leader="alice",
        points=1000,
        created_at=1700000000,
        members={
            "alice": ClanMember(id="alice", rank=ClanRank.LEADER, joined_at=1700000000),
        },
    )


async def test_save_and_get(store: ClanStore) -> None:
    # ARRANGE
    clan = make_clan()

    # ACT
    assert await store.save(clan)
    fetched = await store.get("foo")

    # ASSERT
    assert fetched is not None
    assert fetched.id == "foo"
    assert fetched.name == "Foo"
    assert fetched.leader == "alice"
    assert fetched.points == 1000
    assert fetched.icon is None
    assert fetched.description is None
    assert fetched.created_at == 1700000000
    assert fetched.members == clan.members


async def test_get_missing(store: ClanStore) -> None:
    assert await store.get("nope") is None


async def test_save_overwrites(store: ClanStore) -> None:
    clan = make_clan()
    assert await store.save(clan)

    clan.points = 250
    clan.icon = "https://example.com/foo.png"
    clan.members["bob"] = ClanMember(id="bob", rank=ClanRank.MEMBER, joined_at=1700000050)
    del clan.members["alice"]
    assert await store.save(clan)

    fetched = await store.get("foo")
    assert fetched is not None
    assert fetched.points == 250
    assert fetched.icon == "https://example.com/foo.png"
    assert set(fetched.members) == {"bob"}
    assert fetched.members["bob"].rank is ClanRank.MEMBER


async def test_delete(store: ClanStore) -> None:
    assert await store.save(make_clan())

    assert await store.delete("foo")
    assert await store.get("foo") is None

    # deleting a missing clan is not an error
    assert await store.delete("foo")


async def test_fetch_many_and_count(store: ClanStore) -> None:
    for id in ("charlie", "alpha", "bravo"):
        assert await store.save(make_clan(id=id, name=id.title()))

    assert await store.fetch_count() == 3

    clans = await store.fetch_many()
    assert [c.id for c in clans] == ["alpha", "bravo", "charlie"]
    assert all("alice" in c for c in clans)

    page = await store.fetch_many(page=2, page_size=2)
    assert [c.id for c in page] == ["charlie"]


async def test_faults_are_reported(database: Database) -> None:
    # no tables have been created; every read & write fails
    store = ClanStore(database)

    with pytest.raises(PersistenceError):
        await store.get("foo")

    with pytest.raises(PersistenceError):
        await store.fetch_many()

    with pytest.raises(PersistenceError):
        await store.fetch_count()

    assert not await store.save(make_clan())
    assert not await store.delete("foo")
