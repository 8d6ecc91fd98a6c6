from __future__ import annotations

import asyncio

import httpx

from clanhub.adapters.database import Database
from clanhub.discord import Webhook
from clanhub.logging import Ansi
from clanhub.logging import log
from clanhub.objects.user import User
from clanhub.repositories import logs as logs_repo
from clanhub.repositories.logs import LogTable


class AuditLog:
    """Fire-and-forget record of administrative clan actions.

    Each record is written to the `logs` table, and mirrored to a
    Discord webhook when one is configured. Recording never blocks
    nor fails the action being recorded.
    """

    def __init__(
        self,
        database: Database,
        http_client: httpx.AsyncClient | None = None,
        webhook_url: str | None = None,
    ) -> None:
        self.database = database
        self.http_client = http_client
        self.webhook_url = webhook_url

        self.tasks: set[asyncio.Task[None]] = set()

    async def create_tables(self) -> None:
        await self.database.create_all(LogTable.__table__)

    def record(self, action: str, actor: User, detail: str) -> None:
        """Schedule an audit record for `action`, performed by `actor`."""
        task = asyncio.create_task(self._record(action, actor, detail))
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)

    async def _record(self, action: str, actor: User, detail: str) -> None:
        log_msg = f"[{action}] {detail} (by {actor.name})"
        log(log_msg, Ansi.LCYAN)

        try:
            await logs_repo.create(
                self.database,
                _from=actor.id,
                action=action,
                msg=detail,
            )
        except Exception as exc:
            log(f"Failed to store audit record {log_msg!r}: {exc!r}", Ansi.LRED)

        if self.webhook_url and self.http_client is not None:
            webhook = Webhook(self.webhook_url, content=log_msg)
            try:
                await webhook.post(self.http_client)
            except Exception as exc:
                log(f"Failed to post audit record to discord: {exc!r}", Ansi.LRED)

    async def drain(self) -> None:
        """Wait for every pending audit record to finish."""
        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)
