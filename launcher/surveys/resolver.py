"""Resolution of launchable schemas by name, by URL and from remote catalogues."""

import re
from datetime import UTC, datetime

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from launcher.core.errors import SchemaNotFoundError, SchemaResolutionError
from launcher.core.settings import LauncherSettings
from launcher.surveys.catalogue import BUNDLED_SCHEMA_FILES
from launcher.surveys.claims import BOOLEAN_VALIDATOR, default_claim_values
from launcher.surveys.types import (
    LauncherSchema,
    MetadataField,
    PublishedQuestionnaire,
    QuestionnaireSchema,
)

HTTP_OK = 200
CACHE_BUST_FORMAT = "%Y%m%d%H%M%S"
REGISTER_DATE_FORMAT = "%d/%m/%Y"

EQ_ID_FORM_TYPE_PATTERN = re.compile(
    r"^(?P<eq_id>[a-z0-9]+)_(?P<form_type>\w+)(?:\.json)?"
)

_filenames_adapter = TypeAdapter(list[str])
_published_adapter = TypeAdapter(list[PublishedQuestionnaire])

logger = structlog.get_logger(__name__)


def extract_eq_id_form_type(name: str) -> tuple[str, str]:
    """Split ``<eq_id>_<form_type>[.json]``; unmatched names give empty strings."""
    match = EQ_ID_FORM_TYPE_PATTERN.match(name)
    if match is None:
        return "", ""
    return match.group("eq_id"), match.group("form_type")


def launcher_schema_from_filename(filename: str) -> LauncherSchema:
    """Build a LauncherSchema for a schema file bundled with the runner."""
    eq_id, form_type = extract_eq_id_form_type(filename)
    return LauncherSchema(name=filename, eq_id=eq_id, form_type=form_type)


def add_cache_bust(url: str, now: datetime | None = None) -> str:
    """Append a timestamp query parameter unless the URL already has a query."""
    if "?" in url:
        return url
    stamp = (now or datetime.now(UTC)).strftime(CACHE_BUST_FORMAT)
    return f"{url}?bust={stamp}"


def _published_date(value: str) -> str:
    try:
        published = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return published.strftime(REGISTER_DATE_FORMAT)


def schemas_from_published(
    register_url: str, published: list[PublishedQuestionnaire]
) -> list[LauncherSchema]:
    """Expand register descriptors into one LauncherSchema per published version."""
    base = register_url.rstrip("/")
    schemas = []
    for item in published:
        try:
            versions = int(item.survey_version)
        except ValueError:
            logger.warning(
                "register_version_invalid",
                survey_id=item.survey_id,
                survey_version=item.survey_version,
            )
            continue
        date = _published_date(item.last_published)
        for version in range(1, versions + 1):
            schemas.append(
                LauncherSchema(
                    name=(
                        f"{item.survey_id}_{item.form_type} {item.title} "
                        f"(v{version} - {date})"
                    ),
                    eq_id=item.eq_id or item.survey_id,
                    form_type=item.form_type,
                    url=(
                        f"{base}/questionnaire/{item.survey_id}/"
                        f"{item.form_type}/{version}"
                    ),
                )
            )
    return schemas


class SchemaResolver:
    """Finds schemas and reads their documents over HTTP.

    All requests go through the supplied client, whose timeout bounds how
    long a slow schema service can hold up a request.
    """

    def __init__(self, settings: LauncherSettings, client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._client = client

    async def get_available_schemas(self) -> list[LauncherSchema]:
        """Bundled schemas joined with runner and register schemas, by unique name."""
        schemas = [launcher_schema_from_filename(f) for f in BUNDLED_SCHEMA_FILES]
        schemas.extend(await self.get_schemas_from_runner())
        schemas.extend(await self.get_schemas_from_register())

        seen: set[str] = set()
        unique = []
        for schema in schemas:
            if schema.name in seen:
                continue
            seen.add(schema.name)
            unique.append(schema)
        return unique

    async def get_schemas_from_runner(self) -> list[LauncherSchema]:
        """Schema files listed by the runner; an unreachable runner lists none."""
        url = f"{self._settings.schema_base_url}/schemas"
        body = await self._get_optional(url)
        if body is None:
            return []
        try:
            filenames = _filenames_adapter.validate_json(body)
        except ValidationError:
            logger.warning("runner_schemas_unreadable", url=url)
            return []
        return [launcher_schema_from_filename(f) for f in filenames]

    async def get_schemas_from_register(self) -> list[LauncherSchema]:
        """Published questionnaires from the survey register, if one is configured."""
        register_url = self._settings.survey_register_url
        if not register_url:
            return []
        url = f"{register_url.rstrip('/')}/questionnaires/published"
        body = await self._get_optional(url)
        if body is None:
            return []
        try:
            published = _published_adapter.validate_json(body)
        except ValidationError:
            logger.warning("register_schemas_unreadable", url=url)
            return []
        return schemas_from_published(register_url, published)

    async def _get_optional(self, url: str) -> bytes | None:
        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("schema_source_unreachable", url=url, error=str(exc))
            return None
        if resp.status_code != HTTP_OK:
            logger.warning(
                "schema_source_unreachable", url=url, status=resp.status_code
            )
            return None
        return resp.content

    async def find_survey_by_name(self, name: str) -> LauncherSchema:
        """Return the available schema called ``name``.

        Raises SchemaNotFoundError when there is none.
        """
        for schema in await self.get_available_schemas():
            if schema.name == name:
                return schema
        raise SchemaNotFoundError(name)

    async def _fetch(self, url: str) -> bytes:
        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise SchemaResolutionError(
                "fetch", f"Failed to load Schema from {url}", exc
            ) from exc
        if resp.status_code != HTTP_OK:
            raise SchemaResolutionError(
                "fetch",
                f"Failed to load Schema from {url} (status {resp.status_code})",
            )
        return resp.content

    async def launcher_schema_from_url(self, url: str) -> LauncherSchema:
        """Fetch, validate and parse the schema document at ``url``."""
        body = await self._fetch(url)
        await self.validate_schema(body)

        try:
            schema = QuestionnaireSchema.model_validate_json(body)
        except ValidationError as exc:
            raise SchemaResolutionError(
                "unmarshal", f"Failed to unmarshal Schema from {url}", exc
            ) from exc

        busted = add_cache_bust(url)
        logger.info(
            "schema_resolved",
            url=busted,
            eq_id=schema.eq_id,
            form_type=schema.form_type,
        )
        return LauncherSchema(
            name=url, eq_id=schema.eq_id, form_type=schema.form_type, url=busted
        )

    async def validate_schema(self, payload: bytes) -> None:
        """POST ``payload`` to the configured validator; no validator accepts all."""
        validator_url = self._settings.schema_validator_url
        if not validator_url:
            return

        url = f"{validator_url.rstrip('/')}/validate"
        try:
            resp = await self._client.post(
                url, content=payload, headers={"Content-Type": "application/json"}
            )
        except httpx.HTTPError as exc:
            raise SchemaResolutionError("validate", str(exc), exc) from exc

        if resp.status_code != HTTP_OK:
            raise SchemaResolutionError("validate", resp.text)

    async def get_required_metadata(
        self, schema: LauncherSchema
    ) -> list[MetadataField]:
        """Read the schema's ``metadata`` entries and attach launcher defaults."""
        url = schema.url or (
            f"{self._settings.schema_base_url}/schemas/"
            f"{schema.eq_id}/{schema.form_type}"
        )
        logger.info("loading_schema_metadata", url=url)
        body = await self._fetch(url)

        try:
            document = QuestionnaireSchema.model_validate_json(body)
        except ValidationError as exc:
            raise SchemaResolutionError(
                "unmarshal", f"Failed to unmarshal Schema from {url}", exc
            ) from exc

        defaults = default_claim_values()
        fields = []
        for field in document.metadata:
            default = defaults.get(field.name, "")
            if field.validator == BOOLEAN_VALIDATOR:
                default = "false"
            fields.append(field.model_copy(update={"default": default}))
        return fields
