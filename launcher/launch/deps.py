"""FastAPI dependencies shared by the launch routes."""

from collections.abc import AsyncIterator
from typing import Annotated

import httpx
from fastapi import Depends, Request

from launcher.core.settings import LauncherSettings
from launcher.surveys.resolver import SchemaResolver


def get_settings(request: Request) -> LauncherSettings:
    return request.app.state.settings


async def get_http_client(
    settings: Annotated[LauncherSettings, Depends(get_settings)],
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield an outbound client with the configured timeout."""
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        yield client


def get_resolver(
    settings: Annotated[LauncherSettings, Depends(get_settings)],
    client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
) -> SchemaResolver:
    return SchemaResolver(settings, client)
