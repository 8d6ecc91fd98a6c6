from __future__ import annotations

import sqlite3
from typing import TypedDict
from typing import cast

import pymysql
from sqlalchemy import Column
from sqlalchemy import Integer
from sqlalchemy import String
from sqlalchemy import delete
from sqlalchemy import func
from sqlalchemy import insert
from sqlalchemy import select
from sqlalchemy import update

from clanhub.adapters.database import Database
from clanhub.constants.privileges import ClanRank
from clanhub.logging import Ansi
from clanhub.logging import log
from clanhub.objects.clan import Clan
from clanhub.objects.clan import ClanMember
from clanhub.repositories import Base

# faults raised by the database drivers we support
PERSISTENCE_ERRORS = (pymysql.err.MySQLError, sqlite3.Error, OSError)


# column widths; inputs are checked against these before saving
CLAN_ID_MAX_LENGTH = 32
CLAN_NAME_MAX_LENGTH = 64
USER_ID_MAX_LENGTH = 32
ICON_MAX_LENGTH = 256
DESCRIPTION_MAX_LENGTH = 1024


class PersistenceError(Exception):
    """The clan store could not be read from."""


class ClansTable(Base):
    __tablename__ = "clans"

    id = Column(
        "id",
        String(CLAN_ID_MAX_LENGTH),
        primary_key=True,
        nullable=False,
    )
    name = Column("name", String(CLAN_NAME_MAX_LENGTH), nullable=False)
    leader = Column("leader", String(USER_ID_MAX_LENGTH), nullable=False)
    points = Column("points", Integer, nullable=False, server_default="0")
    icon = Column("icon", String(ICON_MAX_LENGTH), nullable=True)
    description = Column(
        "description",
        String(DESCRIPTION_MAX_LENGTH),
        nullable=True,
    )
    created_at = Column("created_at", Integer, nullable=False)


class ClanMembersTable(Base):
    __tablename__ = "clan_members"

    clan_id = Column(
        "clan_id",
        String(CLAN_ID_MAX_LENGTH),
        primary_key=True,
        nullable=False,
    )
    user_id = Column(
        "user_id",
        String(USER_ID_MAX_LENGTH),
        primary_key=True,
        nullable=False,
    )
    clan_rank = Column("clan_rank", Integer, nullable=False)
    joined_at = Column("joined_at", Integer, nullable=False)


READ_PARAMS = (
    ClansTable.id,
    ClansTable.name,
    ClansTable.leader,
    ClansTable.points,
    ClansTable.icon,
    ClansTable.description,
    ClansTable.created_at,
)

MEMBER_READ_PARAMS = (
    ClanMembersTable.user_id,
    ClanMembersTable.clan_rank,
    ClanMembersTable.joined_at,
)


class ClanRow(TypedDict):
    id: str
    name: str
    leader: str
    points: int
    icon: str | None
    description: str | None
    created_at: int


class ClanMemberRow(TypedDict):
    user_id: str
    clan_rank: int
    joined_at: int


def deserialize(clan_row: ClanRow, member_rows: list[ClanMemberRow]) -> Clan:
    members = {
        row["user_id"]: ClanMember(
            id=row["user_id"],
            rank=ClanRank(row["clan_rank"]),
            joined_at=row["joined_at"],
        )
        for row in member_rows
    }
    return Clan(
        id=clan_row["id"],
        name=clan_row["name"],
        leader=clan_row["leader"],
        points=clan_row["points"],
        created_at=clan_row["created_at"],
        members=members,
        icon=clan_row["icon"],
        description=clan_row["description"],
    )


class ClanStore:
    """Durable storage of clans & their members, keyed by clan id.

    No business rules are checked here; records are expected to
    arrive already validated. Each write runs in a transaction.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    async def create_tables(self) -> None:
        await self.database.create_all(
            ClansTable.__table__,
            ClanMembersTable.__table__,
        )

    async def _fetch_members(self, clan_id: str) -> list[ClanMemberRow]:
        select_stmt = select(*MEMBER_READ_PARAMS).where(
            ClanMembersTable.clan_id == clan_id,
        )
        members = await self.database.fetch_all(select_stmt)
        return cast(list[ClanMemberRow], members)

    async def get(self, id: str) -> Clan | None:
        """Fetch a single clan & its members."""
        select_stmt = select(*READ_PARAMS).where(ClansTable.id == id)
        try:
            clan = await self.database.fetch_one(select_stmt)
            if clan is None:
                return None

            members = await self._fetch_members(id)
        except PERSISTENCE_ERRORS as exc:
            log(f"Failed to fetch clan {id!r}: {exc!r}", Ansi.LRED)
            raise PersistenceError(f"Failed to fetch clan {id!r}.") from exc

        return deserialize(cast(ClanRow, clan), members)

    async def save(self, clan: Clan) -> bool:
        """Insert or fully overwrite a clan & its members."""
        values = {
            "name": clan.name,
            "leader": clan.leader,
            "points": clan.points,
            "icon": clan.icon,
            "description": clan.description,
            "created_at": clan.created_at,
        }
        member_values = [
            {
                "clan_id": clan.id,
                "user_id": member.id,
                "clan_rank": int(member.rank),
                "joined_at": member.joined_at,
            }
            for member in clan.members.values()
        ]

        try:
            async with self.database.transaction():
                # write before reading, so the transaction takes
                # the write lock up front rather than upgrading to it.
                await self.database.execute(
                    delete(ClanMembersTable).where(
                        ClanMembersTable.clan_id == clan.id,
                    ),
                )

                existing_id = await self.database.fetch_val(
                    select(ClansTable.id).where(ClansTable.id == clan.id),
                )
                if existing_id is None:
                    await self.database.execute(
                        insert(ClansTable).values(id=clan.id, **values),
                    )
                else:
                    await self.database.execute(
                        update(ClansTable)
                        .where(ClansTable.id == clan.id)
                        .values(**values),
                    )

                if member_values:
                    await self.database.execute(
                        insert(ClanMembersTable).values(member_values),
                    )
        except PERSISTENCE_ERRORS as exc:
            log(f"Failed to save clan {clan!r}: {exc!r}", Ansi.LRED)
            return False

        return True

    async def delete(self, id: str) -> bool:
        """Delete a clan & all of its members."""
        try:
            async with self.database.transaction():
                await self.database.execute(
                    delete(ClanMembersTable).where(ClanMembersTable.clan_id == id),
                )
                await self.database.execute(
                    delete(ClansTable).where(ClansTable.id == id),
                )
        except PERSISTENCE_ERRORS as exc:
            log(f"Failed to delete clan {id!r}: {exc!r}", Ansi.LRED)
            return False

        return True

    async def fetch_count(self) -> int:
        """Fetch the number of clans in the database."""
        select_stmt = select(func.count().label("count")).select_from(ClansTable)
        try:
            rec = await self.database.fetch_one(select_stmt)
        except PERSISTENCE_ERRORS as exc:
            log(f"Failed to count clans: {exc!r}", Ansi.LRED)
            raise PersistenceError("Failed to count clans.") from exc

        assert rec is not None
        return cast(int, rec["count"])

    async def fetch_many(
        self,
        page: int | None = None,
        page_size: int | None = None,
    ) -> list[Clan]:
        """Fetch many clans from the database, ordered by id."""
        select_stmt = select(*READ_PARAMS).order_by(ClansTable.id)
        if page is not None and page_size is not None:
            select_stmt = select_stmt.limit(page_size).offset((page - 1) * page_size)

        try:
            clans = await self.database.fetch_all(select_stmt)
            return [
                deserialize(cast(ClanRow, clan), await self._fetch_members(clan["id"]))
                for clan in clans
            ]
        except PERSISTENCE_ERRORS as exc:
            log(f"Failed to fetch clans: {exc!r}", Ansi.LRED)
            raise PersistenceError("Failed to fetch clans.") from exc
