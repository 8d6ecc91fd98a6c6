from __future__ import annotations

from dataclasses import dataclass

from clanhub.constants.privileges import ClanRank

__all__ = ("Clan", "ClanMember")


@dataclass
class ClanMember:
    id: str  # safe name
    rank: ClanRank
    joined_at: int


class Clan:
    """A class to represent a single clan.

    Possibly confusing attributes
    -----------
    id: `str`
        The safe (normalized) form of `name`; this is also
        the id of the clan's channel.

    leader: `str`
        The id of the one member holding `ClanRank.LEADER`.

    members: `dict[str, ClanMember]`
        The clan's members, keyed by their ids.
    """

    def __init__(
        self,
        id: str,
        name: str,
        leader: str,
        points: int,
        created_at: int,
        members: dict[str, ClanMember] | None = None,
        icon: str | None = None,
        description: str | None = None,
    ) -> None:
        self.id = id
        self.name = name
        self.leader = leader
        self.points = points
        self.created_at = created_at

        if members is None:
            members = {}

        self.members = members

        self.icon = icon
        self.description = description

    def __repr__(self) -> str:
        return f"<{self.name} ({self.id})>"

    def __contains__(self, user_id: object) -> bool:
        return user_id in self.members

    def get_member(self, user_id: str) -> ClanMember | None:
        return self.members.get(user_id)

    def is_leader(self, user_id: str) -> bool:
        member = self.members.get(user_id)
        return member is not None and member.rank == ClanRank.LEADER

    @property
    def leaders(self) -> list[ClanMember]:
        """All members holding the leader rank (there should only be one)."""
        return [m for m in self.members.values() if m.rank == ClanRank.LEADER]

    def members_by_rank(self) -> list[ClanMember]:
        """Return the members, highest rank & longest standing first."""
        return sorted(
            self.members.values(),
            key=lambda m: (-m.rank, m.joined_at, m.id),
        )
