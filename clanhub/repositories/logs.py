from __future__ import annotations

from typing import TypedDict
from typing import cast

from sqlalchemy import Column
from sqlalchemy import Integer
from sqlalchemy import String
from sqlalchemy import insert
from sqlalchemy import select

from clanhub.adapters.database import Database
from clanhub.repositories import Base
from clanhub.utils import unix_time


class LogTable(Base):
    __tablename__ = "logs"

    id = Column("id", Integer, nullable=False, primary_key=True, autoincrement=True)
    _from = Column(
        "from",
        String(32),
        nullable=False,
        comment="safe name of the acting user",
    )
    action = Column("action", String(32), nullable=False)
    msg = Column(
        "msg",
        String(2048),
        nullable=True,
    )
    time = Column("time", Integer, nullable=False)


READ_PARAMS = (
    LogTable.id,
    LogTable._from.label("from"),
    LogTable.action,
    LogTable.msg,
    LogTable.time,
)


class Log(TypedDict):
    id: int
    _from: str
    action: str
    msg: str | None
    time: int


async def create(
    database: Database,
    _from: str,
    action: str,
    msg: str,
) -> Log:
    """Create a new log entry in the database."""
    insert_stmt = insert(LogTable).values(
        {
            "from": _from,
            "action": action,
            "msg": msg,
            "time": unix_time(),
        },
    )
    rec_id = await database.execute(insert_stmt)

    select_stmt = select(*READ_PARAMS).where(LogTable.id == rec_id)
    log = await database.fetch_one(select_stmt)
    assert log is not None
    return cast(Log, log)


async def fetch_many(
    database: Database,
    action: str | None = None,
) -> list[Log]:
    """Fetch many log entries from the database, oldest first."""
    select_stmt = select(*READ_PARAMS)
    if action is not None:
        select_stmt = select_stmt.where(LogTable.action == action)

    select_stmt = select_stmt.order_by(LogTable.id)

    logs = await database.fetch_all(select_stmt)
    return cast(list[Log], logs)
