"""Server count route — cached Discord application info."""

from fastapi import APIRouter, Depends, Request

from services.discord import ServerCountProxy

router = APIRouter(prefix="/api")


def get_server_proxy(request: Request) -> ServerCountProxy:
    return request.app.state.server_proxy


@router.get("/servercount")
async def server_count(proxy: ServerCountProxy = Depends(get_server_proxy)) -> dict:
    return await proxy.handle_request()
