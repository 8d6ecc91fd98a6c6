from __future__ import annotations

import os

# settings are read at import time; keep the
# developer's environment out of our tests.
os.environ["DB_DSN"] = "sqlite:///./clanhub-test.db"
os.environ["DISCORD_AUDIT_LOG_WEBHOOK"] = ""
os.environ["DISALLOWED_NAMES"] = "lobby,staff"
os.environ["DEBUG"] = "false"

from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from clanhub.adapters.database import Database
from clanhub.constants.privileges import Privileges
from clanhub.objects.collections import Channels
from clanhub.objects.collections import Users
from clanhub.objects.user import User
from clanhub.repositories.clans import ClanStore
from clanhub.usecases.audit import AuditLog
from clanhub.usecases.clans import ClanRegistry


@pytest.fixture
def db_dsn(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'clanhub.db'}"


@pytest.fixture
async def database(db_dsn: str) -> AsyncIterator[Database]:
    database = Database(db_dsn)
    await database.connect()
    yield database
    await database.disconnect()


@pytest.fixture
async def store(database: Database) -> ClanStore:
    store = ClanStore(database)
    await store.create_tables()
    return store


@pytest.fixture
async def audit(database: Database) -> AsyncIterator[AuditLog]:
    audit = AuditLog(database)
    await audit.create_tables()
    yield audit
    await audit.drain()


@pytest.fixture
def channels() -> Channels:
    return Channels()


@pytest.fixture
def registry(store: ClanStore, channels: Channels, audit: AuditLog) -> ClanRegistry:
    return ClanRegistry(store, channels, audit, disallowed_names=["lobby"])


@pytest.fixture
def admin() -> User:
    return User("Admin", Privileges.UNRESTRICTED | Privileges.ADMINISTRATOR)


@pytest.fixture
def alice() -> User:
    return User("alice")


@pytest.fixture
def bob() -> User:
    return User("Bob")


@pytest.fixture
def users(admin: User, alice: User, bob: User) -> Users:
    users = Users()
    users.extend([admin, alice, bob])
    return users
