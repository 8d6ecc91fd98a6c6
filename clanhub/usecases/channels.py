from __future__ import annotations

from typing import Protocol
from typing import TypedDict

from clanhub.constants.privileges import CLAN_RANK_SYMBOLS
from clanhub.constants.privileges import ClanRank
from clanhub.objects.channel import Channel
from clanhub.objects.clan import Clan


class ChannelMetadata(TypedDict):
    title: str
    auth: dict[str, str]
    rank_symbols: dict[str, str]


class ChannelGateway(Protocol):
    """The host server's channel lifecycle, as used by the clan registry."""

    def exists(self, channel_id: str) -> bool: ...

    async def create_channel(
        self,
        channel_id: str,
        metadata: ChannelMetadata,
    ) -> Channel | None: ...

    async def destroy_channel(self, channel_id: str) -> None: ...

    async def post_system_message(self, channel_id: str, text: str) -> None: ...


def make_clan_channel_metadata(clan: Clan) -> ChannelMetadata:
    """Build the metadata a new clan's channel is seeded with."""
    return {
        "title": clan.name,
        "auth": {clan.leader: CLAN_RANK_SYMBOLS[ClanRank.LEADER]},
        "rank_symbols": {
            str(rank): symbol for rank, symbol in CLAN_RANK_SYMBOLS.items()
        },
    }
