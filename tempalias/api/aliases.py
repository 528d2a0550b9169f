"""
Alias API Endpoints

Lifecycle operations on aliases. Every mutating endpoint redirects back
to the list page; hard failures are rendered by the application's
exception handler as a plain-text error.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse

from tempalias.dependencies import get_alias_service
from tempalias.schemas.alias import AliasRead
from tempalias.services.alias_service import AliasLifecycleService

router = APIRouter()


def _back_to_list() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)


@router.get(
    "/aliases",
    response_model=List[AliasRead],
    summary="List aliases",
)
async def list_aliases(
    alias_service: AliasLifecycleService = Depends(get_alias_service),
):
    """
    List every alias, active ones first and newest first within a status.
    """
    return [AliasRead.from_alias(alias) for alias in await alias_service.list_aliases()]


@router.post(
    "/generate",
    summary="Generate a new alias",
    status_code=status.HTTP_303_SEE_OTHER,
    responses={500: {"description": "Cloudflare or database failure"}},
)
async def generate_alias(
    alias_service: AliasLifecycleService = Depends(get_alias_service),
):
    """
    Create a random alias with an enabled forwarding rule, valid for one TTL.
    """
    await alias_service.generate()
    return _back_to_list()


@router.get(
    "/toggle",
    summary="Enable or disable an alias",
    status_code=status.HTTP_303_SEE_OTHER,
    responses={
        404: {"description": "Alias not found"},
        409: {"description": "Alias is deleted"},
        500: {"description": "Cloudflare update failed"},
    },
)
async def toggle_alias(
    alias_id: int = Query(..., alias="id"),
    alias_service: AliasLifecycleService = Depends(get_alias_service),
):
    await alias_service.toggle(alias_id)
    return _back_to_list()


@router.get(
    "/delete",
    summary="Delete an alias",
    status_code=status.HTTP_303_SEE_OTHER,
    responses={404: {"description": "Alias not found"}},
)
async def delete_alias(
    alias_id: int = Query(..., alias="id"),
    alias_service: AliasLifecycleService = Depends(get_alias_service),
):
    """
    Soft-delete an alias. The Cloudflare rule is removed on a best-effort basis.
    """
    await alias_service.delete(alias_id)
    return _back_to_list()


@router.get(
    "/recreate",
    summary="Recreate an alias",
    status_code=status.HTTP_303_SEE_OTHER,
    responses={
        404: {"description": "Alias not found"},
        500: {"description": "Cloudflare rule creation failed"},
    },
)
async def recreate_alias(
    alias_id: int = Query(..., alias="id"),
    alias_service: AliasLifecycleService = Depends(get_alias_service),
):
    """
    Revive an alias under its existing address with a new rule and a fresh expiry.
    """
    await alias_service.recreate(alias_id)
    return _back_to_list()


@router.get(
    "/renew",
    summary="Extend an alias's expiry",
    status_code=status.HTTP_303_SEE_OTHER,
)
async def renew_alias(
    alias_id: int = Query(..., alias="id"),
    alias_service: AliasLifecycleService = Depends(get_alias_service),
):
    """
    Add one TTL to an active alias's expiry. Non-active aliases are left alone.
    """
    await alias_service.renew(alias_id)
    return _back_to_list()
