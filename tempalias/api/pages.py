"""
HTML pages.
"""

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from tempalias.dependencies import get_alias_service
from tempalias.schemas.alias import AliasRead
from tempalias.services.alias_service import AliasLifecycleService

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
router = APIRouter()


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index(
    request: Request,
    alias_service: AliasLifecycleService = Depends(get_alias_service),
):
    """
    Render the alias list, active aliases first.
    """
    aliases = [AliasRead.from_alias(alias) for alias in await alias_service.list_aliases()]
    return templates.TemplateResponse(request, "index.html", {"emails": aliases})
