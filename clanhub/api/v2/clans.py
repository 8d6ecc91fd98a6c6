""" clanhub's v2 apis for reading clans """
from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Request
from fastapi import status
from fastapi.param_functions import Query

from clanhub.api.v2.common import responses
from clanhub.api.v2.common.responses import Success
from clanhub.api.v2.models.clans import Clan
from clanhub.errors import Error
from clanhub.errors import ErrorCode
from clanhub.usecases.clans import ClanRegistry

router = APIRouter()

STATUS_CODES = {
    ErrorCode.UNKNOWN_CLAN: status.HTTP_404_NOT_FOUND,
}


def get_registry(request: Request) -> ClanRegistry:
    registry: ClanRegistry = request.app.state.registry
    return registry


def error_response(error: Error) -> Any:
    if error.is_fault:
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = STATUS_CODES.get(error.error_code, status.HTTP_400_BAD_REQUEST)

    return responses.failure(
        message=error.user_feedback,
        status_code=status_code,
        error_code=error.error_code,
    )


@router.get("/clans")
async def get_clans(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    registry: ClanRegistry = Depends(get_registry),
) -> Success[list[Clan]]:
    result = await registry.list_clans(page=page, page_size=page_size)
    if isinstance(result, Error):
        return error_response(result)

    clans, total_clans = result

    response = [Clan.from_clan(clan) for clan in clans]
    return responses.success(
        content=response,
        meta={
            "total": total_clans,
            "page": page,
            "page_size": page_size,
        },
    )


@router.get(
    "/clans/{clan_id}",
    responses={status.HTTP_404_NOT_FOUND: {"model": responses.ErrorResponse}},
)
async def get_clan(
    clan_id: str,
    registry: ClanRegistry = Depends(get_registry),
) -> Success[Clan]:
    clan = await registry.get_clan(clan_id)
    if isinstance(clan, Error):
        return error_response(clan)

    response = Clan.from_clan(clan)
    return responses.success(response)
