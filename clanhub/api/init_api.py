from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.requests import Request
from fastapi.responses import ORJSONResponse
from fastapi.responses import Response

import clanhub.settings
from clanhub.adapters.database import Database
from clanhub.api.v2 import apiv2_router
from clanhub.logging import Ansi
from clanhub.logging import log
from clanhub.objects.collections import Channels
from clanhub.repositories.clans import ClanStore
from clanhub.usecases.audit import AuditLog
from clanhub.usecases.clans import ClanRegistry


@asynccontextmanager
async def lifespan(asgi_app: FastAPI) -> AsyncIterator[None]:
    """Construct our services on startup, and tear them down on shutdown."""
    database = Database(clanhub.settings.DB_DSN)
    http_client = httpx.AsyncClient()

    await database.connect()

    store = ClanStore(database)
    await store.create_tables()

    audit = AuditLog(
        database,
        http_client=http_client,
        webhook_url=clanhub.settings.DISCORD_AUDIT_LOG_WEBHOOK,
    )
    await audit.create_tables()

    channels = Channels(debug=clanhub.settings.DEBUG)

    registry = ClanRegistry(
        store,
        channels,
        audit,
        starting_points=clanhub.settings.CLAN_STARTING_POINTS,
        disallowed_names=clanhub.settings.DISALLOWED_NAMES,
    )

    # channels live in memory; bring back one for each stored clan.
    restored = await registry.restore_channels()
    if restored:
        log(f"Restored {restored} clan channels.", Ansi.LCYAN)

    # hosts dispatch chat into `process_commands` with these,
    # alongside their own `Users` collection.
    asgi_app.state.channels = channels
    asgi_app.state.registry = registry

    log("Startup process complete.", Ansi.LGREEN)
    log(
        f"Listening @ {clanhub.settings.APP_HOST}:{clanhub.settings.APP_PORT}",
        Ansi.LMAGENTA,
    )

    try:
        yield
    finally:
        # let any pending audit records finish before
        # their connections are closed out from under them.
        await audit.drain()

        await http_client.aclose()
        await database.disconnect()


def init_exception_handlers(asgi_app: FastAPI) -> None:
    @asgi_app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request,
        exc: RequestValidationError,
    ) -> Response:
        """Wrapper around 422 validation errors to print out info for devs."""
        log(f"Validation error on {request.url}: {exc.errors()}", Ansi.LRED)

        return ORJSONResponse(
            content={"detail": jsonable_encoder(exc.errors())},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )


def init_routes(asgi_app: FastAPI) -> None:
    """Initialize our app's route endpoints."""
    asgi_app.include_router(apiv2_router)


def init_api() -> FastAPI:
    """Create & initialize our app."""
    asgi_app = FastAPI(
        title="clanhub",
        version=clanhub.settings.VERSION,
        lifespan=lifespan,
    )

    init_exception_handlers(asgi_app)
    init_routes(asgi_app)

    return asgi_app


asgi_app = init_api()
