"""Patron count route — cached Patreon campaign data."""

from fastapi import APIRouter, Depends, Request

from services.patreon import PatronCountProxy

router = APIRouter(prefix="/api")


def get_patron_proxy(request: Request) -> PatronCountProxy:
    return request.app.state.patron_proxy


@router.get("/patreon")
async def patron_count(proxy: PatronCountProxy = Depends(get_patron_proxy)) -> dict:
    """Patron count of the configured campaign, cached for the TTL window."""
    return await proxy.handle_request()
