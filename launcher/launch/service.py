"""Launch pipeline: resolve the schema, build claims and issue the token."""

from typing import Any

import structlog
from fastapi.concurrency import run_in_threadpool

from launcher.core.settings import LauncherSettings
from launcher.crypto.keys import load_key_material
from launcher.crypto.token_issuer import TokenIssuer
from launcher.surveys.claims import MultiValues, build_claims
from launcher.surveys.resolver import SchemaResolver
from launcher.surveys.types import LauncherSchema

logger = structlog.get_logger(__name__)


async def _issue_for_schema(
    schema: LauncherSchema,
    values: MultiValues,
    resolver: SchemaResolver,
    settings: LauncherSettings,
) -> str:
    metadata = await resolver.get_required_metadata(schema)
    claims = build_claims(
        values,
        schema,
        metadata=metadata,
        account_service_url=settings.account_service_url,
    )
    return await run_in_threadpool(_issue, settings, claims.to_claims())


def _issue(settings: LauncherSettings, claims: dict[str, Any]) -> str:
    return TokenIssuer(load_key_material(settings)).issue(claims)


async def generate_token_from_post(
    values: MultiValues,
    resolver: SchemaResolver,
    settings: LauncherSettings,
) -> str:
    """Issue a token for the schema named by the ``schema`` form field."""
    names = values.get("schema") or [""]
    schema = await resolver.find_survey_by_name(names[0])
    logger.info("launch_from_post", schema=schema.name)
    return await _issue_for_schema(schema, values, resolver, settings)


async def generate_token_from_defaults(
    url: str,
    values: MultiValues,
    resolver: SchemaResolver,
    settings: LauncherSettings,
) -> str:
    """Issue a token for the schema document at ``url``."""
    schema = await resolver.launcher_schema_from_url(url)
    logger.info("quick_launch", url=schema.url)
    return await _issue_for_schema(schema, values, resolver, settings)
