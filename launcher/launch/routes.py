"""Launch form, launch submission and quick-launch endpoints."""

from pathlib import Path
from typing import Annotated
from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from launcher.core.errors import LauncherError
from launcher.core.settings import LauncherSettings
from launcher.launch.deps import get_resolver, get_settings
from launcher.launch.service import (
    generate_token_from_defaults,
    generate_token_from_post,
)
from launcher.surveys.claims import to_multi_dict
from launcher.surveys.resolver import SchemaResolver

router = APIRouter()

HTTP_MOVED_PERMANENTLY = 301
HTTP_FOUND = 302
HTTP_TEMPORARY_REDIRECT = 307
HTTP_BAD_REQUEST = 400
HTTP_SERVER_ERROR = 500

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

logger = structlog.get_logger(__name__)


def _runner_redirect(
    settings: LauncherSettings, path: str, token: str, status_code: int
) -> RedirectResponse:
    location = f"{settings.runner_base_url}/{path}?{urlencode({'token': token})}"
    return RedirectResponse(location, status_code=status_code)


@router.get("/", response_class=HTMLResponse)
async def launch_form(
    request: Request,
    resolver: Annotated[SchemaResolver, Depends(get_resolver)],
    settings: Annotated[LauncherSettings, Depends(get_settings)],
) -> HTMLResponse:
    """GET / -- list the schemas that can be launched."""
    schemas = await resolver.get_available_schemas()
    return templates.TemplateResponse(
        request,
        "launch.html",
        {
            "schemas": schemas,
            "account_service_url": settings.account_service_url,
        },
    )


@router.post("/", response_model=None)
async def launch(
    request: Request,
    resolver: Annotated[SchemaResolver, Depends(get_resolver)],
    settings: Annotated[LauncherSettings, Depends(get_settings)],
) -> RedirectResponse | PlainTextResponse:
    """POST / -- issue a token for the submitted form and redirect to the runner."""
    form = await request.form()
    values = to_multi_dict(form.multi_items())

    if values.get("action_flush"):
        path, status_code = "flush", HTTP_TEMPORARY_REDIRECT
    elif values.get("action_launch"):
        path, status_code = "session", HTTP_MOVED_PERMANENTLY
    else:
        return PlainTextResponse("Invalid Action", status_code=HTTP_SERVER_ERROR)

    try:
        token = await generate_token_from_post(values, resolver, settings)
    except LauncherError as exc:
        logger.error("launch_failed", op=exc.op, error=str(exc))
        return PlainTextResponse(
            f"generate_token_from_post failed err: {exc}",
            status_code=HTTP_SERVER_ERROR,
        )

    return _runner_redirect(settings, path, token, status_code)


@router.get("/quick-launch", response_model=None)
async def quick_launch(
    request: Request,
    resolver: Annotated[SchemaResolver, Depends(get_resolver)],
    settings: Annotated[LauncherSettings, Depends(get_settings)],
) -> RedirectResponse | PlainTextResponse:
    """GET /quick-launch?url=... -- launch a remote schema with default claims."""
    values = to_multi_dict(request.query_params.multi_items())
    urls = values.pop("url", None)
    if not urls or not urls[0]:
        return PlainTextResponse(
            "Not Found: missing url parameter", status_code=HTTP_BAD_REQUEST
        )

    try:
        token = await generate_token_from_defaults(urls[0], values, resolver, settings)
    except LauncherError as exc:
        logger.error("quick_launch_failed", op=exc.op, error=str(exc))
        return PlainTextResponse(
            f"generate_token_from_defaults failed err: {exc}",
            status_code=HTTP_SERVER_ERROR,
        )

    return _runner_redirect(settings, "session", token, HTTP_FOUND)
