from __future__ import annotations

import httpx
import orjson
import respx

from clanhub.adapters.database import Database
from clanhub.objects.user import User
from clanhub.repositories import logs as logs_repo
from clanhub.usecases.audit import AuditLog

WEBHOOK_URL = "https://discord.com/api/webhooks/1/token"


async def test_record_stores_log(audit: AuditLog, admin: User) -> None:
    # ACT
    audit.record("GIVEPOINTS", admin, "50 points to Foo")
    await audit.drain()

    # ASSERT
    (log,) = await logs_repo.fetch_many(audit.database)
    assert log["action"] == "GIVEPOINTS"
    assert log["msg"] == "50 points to Foo"
    assert log["from"] == "admin"  # type: ignore[typeddict-item]
    assert log["time"] > 0


async def test_record_posts_webhook(
    database: Database,
    admin: User,
    respx_mock: respx.MockRouter,
) -> None:
    # ARRANGE
    route = respx_mock.post(WEBHOOK_URL).mock(return_value=httpx.Response(204))

    async with httpx.AsyncClient() as http_client:
        audit = AuditLog(database, http_client=http_client, webhook_url=WEBHOOK_URL)
        await audit.create_tables()

        # ACT
        audit.record("CLANDELETE", admin, "Foo")
        await audit.drain()

    # ASSERT
    assert route.call_count == 1
    assert orjson.loads(route.calls.last.request.content) == {
        "content": "[CLANDELETE] Foo (by Admin)",
    }
    assert len(await logs_repo.fetch_many(database, action="CLANDELETE")) == 1


async def test_record_failures_are_contained(database: Database, admin: User) -> None:
    # no logs table, and an unreachable webhook
    transport = httpx.MockTransport(lambda request: httpx.Response(500))
    async with httpx.AsyncClient(transport=transport) as http_client:
        audit = AuditLog(database, http_client=http_client, webhook_url=WEBHOOK_URL)

        audit.record("CLANDELETE", admin, "Foo")
        await audit.drain()

    assert not audit.tasks
