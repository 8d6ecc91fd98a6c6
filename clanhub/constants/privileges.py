from __future__ import annotations

from enum import IntEnum
from enum import IntFlag
from enum import unique

__all__ = ("Privileges", "ClanRank", "CLAN_RANK_NAMES", "CLAN_RANK_SYMBOLS")


@unique
class Privileges(IntFlag):
    """Server side user privileges."""

    # privileges intended for all normal users.
    UNRESTRICTED = 1 << 0  # is an unbanned user.
    VERIFIED = 1 << 1  # has logged in to the server.

    # donation tiers, receives some extra benefits.
    SUPPORTER = 1 << 4

    # staff permissions, able to manage server state.
    MODERATOR = 1 << 12  # able to manage users (level 1).
    ADMINISTRATOR = 1 << 13  # able to manage users & clans (level 2).
    DEVELOPER = 1 << 14  # able to manage full server state.

    STAFF = MODERATOR | ADMINISTRATOR | DEVELOPER


@unique
class ClanRank(IntEnum):
    """A clan member's authority within their clan."""

    RECRUIT = 1
    MEMBER = 2
    SENIOR = 3
    DEPUTY = 4
    LEADER = 5

    def __str__(self) -> str:
        return CLAN_RANK_NAMES[self]


CLAN_RANK_NAMES = {
    ClanRank.LEADER: "Leader",
    ClanRank.DEPUTY: "Deputy",
    ClanRank.SENIOR: "Senior",
    ClanRank.MEMBER: "Member",
    ClanRank.RECRUIT: "Recruit",
}

# channel auth symbols granted for each rank; recruits get none.
CLAN_RANK_SYMBOLS = {
    ClanRank.LEADER: "#",
    ClanRank.DEPUTY: "@",
    ClanRank.SENIOR: "%",
    ClanRank.MEMBER: "+",
}
