from __future__ import annotations

from clanhub.constants.privileges import ClanRank
from clanhub.objects.channel import Channel
from clanhub.objects.clan import Clan
from clanhub.objects.clan import ClanMember
from clanhub.objects.collections import Channels
from clanhub.objects.collections import Users
from clanhub.objects.user import User
from clanhub.usecases.channels import make_clan_channel_metadata


def make_clan() -> Clan:
    return Clan(
        id="foo",
        name="Foo",
        leader="alice",
        points=1000,
        created_at=0,
        members={
            "carol": ClanMember(id="carol", rank=ClanRank.RECRUIT, joined_at=5),
            "alice": ClanMember(id="alice", rank=ClanRank.LEADER, joined_at=0),
            "dave": ClanMember(id="dave", rank=ClanRank.MEMBER, joined_at=3),
            "bob": ClanMember(id="bob", rank=ClanRank.MEMBER, joined_at=2),
        },
    )


def test_clan_membership() -> None:
    clan = make_clan()

    assert "alice" in clan
    assert "eve" not in clan
    assert clan.is_leader("alice")
    assert not clan.is_leader("bob")
    assert [m.id for m in clan.leaders] == ["alice"]
    assert clan.get_member("eve") is None


def test_members_by_rank() -> None:
    clan = make_clan()
    assert [m.id for m in clan.members_by_rank()] == ["alice", "bob", "dave", "carol"]


def test_rank_names() -> None:
    assert str(ClanRank.LEADER) == "Leader"
    assert str(ClanRank.RECRUIT) == "Recruit"


def test_clan_channel_metadata() -> None:
    metadata = make_clan_channel_metadata(make_clan())

    assert metadata["title"] == "Foo"
    assert metadata["auth"] == {"alice": "#"}
    assert metadata["rank_symbols"] == {
        "Leader": "#",
        "Deputy": "@",
        "Senior": "%",
        "Member": "+",
    }


async def test_channel_lifecycle() -> None:
    channels = Channels()

    channel = await channels.create_channel(
        "foo",
        make_clan_channel_metadata(make_clan()),
    )
    assert isinstance(channel, Channel)
    assert channels.exists("foo")
    assert channel.private
    assert channel.persist
    assert channel.modjoin == "+"

    # ids are unique
    assert await channels.create_channel("foo", make_clan_channel_metadata(make_clan())) is None

    await channels.post_system_message("foo", "hello")
    assert channel.messages == ["hello"]

    await channels.destroy_channel("foo")
    assert not channels.exists("foo")

    # destroying a missing channel is a no-op
    await channels.destroy_channel("foo")


def test_channel_rejects_long_messages() -> None:
    channel = Channel(id="foo", title="Foo")
    channel.send_bot("a" * 2000)
    assert channel.messages == ["message would have been too long (2000 chars)"]


def test_users_lookup() -> None:
    users = Users()
    users.extend([User("Alice"), User("Bob", online=False)])

    assert "ALICE" in users
    assert users.get("alice") is users[0]
    assert users.get_online("alice") is users[0]
    assert users.get("bob") is users[1]
    assert users.get_online("bob") is None
    assert users.get("carol") is None
