"""Assembly of the claim set carried by a launch token."""

from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog
import uuid_utils
from pydantic import BaseModel, ConfigDict, Field

from launcher.surveys.types import LauncherSchema, MetadataField

TOKEN_LIFETIME = timedelta(minutes=10)
BOOLEAN_VALIDATOR = "boolean"
DEFAULT_ROLES = ("dumper",)
TRUTHY_VALUES = frozenset({"1", "t", "T", "TRUE", "true", "True"})

STRING_DEFAULTS: dict[str, str] = {
    "user_id": "UNKNOWN",
    "period_id": "201605",
    "period_str": "May 2017",
    "ru_ref": "12346789012A",
    "ru_name": "ESSENTIAL ENTERPRISE LTD.",
    "trad_as": "ESSENTIAL ENTERPRISE LTD.",
    "ref_p_start_date": "2016-05-01",
    "ref_p_end_date": "2016-05-31",
    "return_by": "2016-06-12",
    "employmentDate": "2016-06-10",
    "region_code": "GB-ENG",
    "language_code": "en",
    "case_ref": "1000000000000001",
    "display_address": "68 Abingdon Road, Goathill, PE12 5EH",
    "country_code": "E",
}

logger = structlog.get_logger(__name__)

MultiValues = Mapping[str, Sequence[str]]


def new_id() -> str:
    """A fresh random UUID string."""
    return str(uuid_utils.uuid4())


def default_claim_values() -> dict[str, str]:
    """Defaults for every string claim, with fresh values for generated ids."""
    values = dict(STRING_DEFAULTS)
    values["collection_exercise_sid"] = new_id()
    values["case_id"] = new_id()
    values["started_at"] = datetime.now(UTC).strftime("%Y-%m-%d")
    return values


def to_multi_dict(items: Iterable[tuple[str, Any]]) -> dict[str, list[str]]:
    """Group (name, value) pairs, e.g. from form data, into name -> values."""
    grouped: dict[str, list[str]] = {}
    for name, value in items:
        if isinstance(value, str):
            grouped.setdefault(name, []).append(value)
    return grouped


def first_value(values: MultiValues, name: str, default: str) -> str:
    """The first supplied value; blank form inputs count as absent."""
    supplied = values.get(name)
    if supplied and supplied[0] != "":
        return supplied[0]
    return default


def parse_bool(value: str) -> bool:
    return value in TRUTHY_VALUES


def bool_or_default(values: MultiValues, name: str, default: bool) -> bool:
    supplied = values.get(name)
    if supplied:
        return parse_bool(supplied[0])
    return default


class ClaimSet(BaseModel):
    """Every claim carried by a launch token."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: str
    period_id: str
    period_str: str
    collection_exercise_sid: str
    ru_ref: str
    ru_name: str
    trad_as: str
    ref_p_start_date: str
    ref_p_end_date: str
    return_by: str
    employment_date: str = Field(alias="employmentDate")
    region_code: str
    language_code: str
    case_id: str
    case_ref: str
    display_address: str
    country_code: str
    started_at: str
    roles: list[str]
    account_service_url: str
    sexual_identity: bool = False
    tx_id: str
    jti: str
    iat: int
    exp: int
    eq_id: str
    form_type: str
    survey_url: str
    extra: dict[str, str | bool] = Field(default_factory=dict)

    def to_claims(self) -> dict[str, Any]:
        """Flatten into the JSON payload that gets signed."""
        payload = self.model_dump(by_alias=True, exclude={"extra"})
        payload.update(self.extra)
        return payload


RECOGNIZED_CLAIMS = frozenset(
    field.alias or name for name, field in ClaimSet.model_fields.items()
) - {"extra"}


def schema_claims(schema: LauncherSchema) -> dict[str, str]:
    """Claims taken from the schema; these override any caller input."""
    return {
        "eq_id": schema.eq_id,
        "form_type": schema.form_type,
        "survey_url": schema.url,
    }


def _metadata_claims(
    values: MultiValues, metadata: Iterable[MetadataField]
) -> dict[str, str | bool]:
    extra: dict[str, str | bool] = {}
    for field in metadata:
        if field.name in RECOGNIZED_CLAIMS:
            continue
        if field.validator == BOOLEAN_VALIDATOR:
            extra[field.name] = bool_or_default(values, field.name, False)
        else:
            extra[field.name] = first_value(values, field.name, field.default)
    return extra


def build_claims(
    values: MultiValues,
    schema: LauncherSchema,
    *,
    metadata: Iterable[MetadataField] = (),
    account_service_url: str = "",
    now: datetime | None = None,
) -> ClaimSet:
    """Merge caller values, defaults, token metadata and schema claims.

    Only recognised claims and claims named in the schema's metadata survive;
    any other input field is dropped.
    """
    claims: dict[str, Any] = {
        name: first_value(values, name, default)
        for name, default in default_claim_values().items()
    }
    roles = [role for role in values.get("roles", ()) if role]
    claims["roles"] = roles or list(DEFAULT_ROLES)
    claims["account_service_url"] = first_value(
        values, "account_service_url", account_service_url
    )
    claims["sexual_identity"] = bool_or_default(values, "sexual_identity", False)

    issued = now or datetime.now(UTC)
    claims["iat"] = int(issued.timestamp())
    claims["exp"] = int((issued + TOKEN_LIFETIME).timestamp())
    claims["jti"] = new_id()
    claims["tx_id"] = new_id()

    claims.update(schema_claims(schema))
    claims["extra"] = _metadata_claims(values, metadata)

    claim_set = ClaimSet.model_validate(claims)
    logger.info(
        "claims_built",
        eq_id=claim_set.eq_id,
        form_type=claim_set.form_type,
        tx_id=claim_set.tx_id,
    )
    return claim_set
