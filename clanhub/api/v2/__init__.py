# isort: dont-add-imports

from fastapi import APIRouter

from . import clans

apiv2_router = APIRouter(tags=["API v2"], prefix="/v2")

apiv2_router.include_router(clans.router)
