from __future__ import annotations

from typing import Any
from typing import cast

from databases import Database as _Database
from databases import DatabaseURL
from databases.core import Transaction
from sqlalchemy import Table
from sqlalchemy.dialects.mysql.mysqldb import MySQLDialect_mysqldb
from sqlalchemy.dialects.sqlite.pysqlite import SQLiteDialect_pysqlite
from sqlalchemy.engine.interfaces import Dialect
from sqlalchemy.schema import CreateTable
from sqlalchemy.sql.compiler import Compiled
from sqlalchemy.sql.expression import ClauseElement


class MySQLDialect(MySQLDialect_mysqldb):
    default_paramstyle = "named"


class SQLiteDialect(SQLiteDialect_pysqlite):
    default_paramstyle = "named"


DIALECTS: dict[str, Dialect] = {
    "mysql": MySQLDialect(),
    "sqlite": SQLiteDialect(),
}

SQLRow = dict[str, Any]
SQLParams = dict[str, Any] | None
SQLQuery = ClauseElement | str


class Database:
    def __init__(self, url: str) -> None:
        self.url = DatabaseURL(url)
        self._database = _Database(url)
        self._dialect = DIALECTS[self.url.dialect]

    @property
    def is_connected(self) -> bool:
        return self._database.is_connected

    async def connect(self) -> None:
        await self._database.connect()

    async def disconnect(self) -> None:
        await self._database.disconnect()

    def _compile(self, clause_element: ClauseElement) -> tuple[str, SQLParams]:
        compiled: Compiled = clause_element.compile(dialect=self._dialect)
        return str(compiled), compiled.params

    async def fetch_one(
        self,
        query: SQLQuery,
        params: SQLParams = None,
    ) -> SQLRow | None:
        if isinstance(query, ClauseElement):
            query, params = self._compile(query)

        row = await self._database.fetch_one(query, params)
        return dict(row._mapping) if row is not None else None

    async def fetch_all(
        self,
        query: SQLQuery,
        params: SQLParams = None,
    ) -> list[SQLRow]:
        if isinstance(query, ClauseElement):
            query, params = self._compile(query)

        rows = await self._database.fetch_all(query, params)
        return [dict(row._mapping) for row in rows]

    async def fetch_val(
        self,
        query: SQLQuery,
        params: SQLParams = None,
        column: Any = 0,
    ) -> Any:
        if isinstance(query, ClauseElement):
            query, params = self._compile(query)

        val = await self._database.fetch_val(query, params, column)
        return val

    async def execute(self, query: SQLQuery, params: SQLParams = None) -> int:
        if isinstance(query, ClauseElement):
            query, params = self._compile(query)

        rec_id = await self._database.execute(query, params)
        return cast(int, rec_id)

    async def create_all(self, *tables: Table) -> None:
        """Create each of `tables` which doesn't yet exist."""
        for table in tables:
            await self.execute(CreateTable(table, if_not_exists=True))

    def transaction(
        self,
        *,
        force_rollback: bool = False,
        **kwargs: Any,
    ) -> Transaction:
        return self._database.transaction(force_rollback=force_rollback, **kwargs)
