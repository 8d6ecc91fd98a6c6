from __future__ import annotations

from clanhub.objects.clan import Clan as ClanObject

from . import BaseModel

# output models


class ClanMember(BaseModel):
    id: str
    rank: int
    rank_name: str
    joined_at: int


class Clan(BaseModel):
    id: str
    name: str
    leader: str
    points: int
    icon: str | None
    description: str | None
    created_at: int
    members: list[ClanMember]

    @classmethod
    def from_clan(cls, clan: ClanObject) -> Clan:
        return cls(
            id=clan.id,
            name=clan.name,
            leader=clan.leader,
            points=clan.points,
            icon=clan.icon,
            description=clan.description,
            created_at=clan.created_at,
            members=[
                ClanMember(
                    id=member.id,
                    rank=int(member.rank),
                    rank_name=str(member.rank),
                    joined_at=member.joined_at,
                )
                for member in clan.members_by_rank()
            ],
        )
