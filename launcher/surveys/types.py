"""Type definitions for questionnaire schemas known to the launcher."""

from pydantic import BaseModel, ConfigDict, Field


class LauncherSchema(BaseModel):
    """A schema that can be launched.

    ``url`` is empty for schemas served by the survey runner itself.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    eq_id: str = ""
    form_type: str = ""
    url: str = ""


class MetadataField(BaseModel):
    """One entry of a schema's ``metadata`` array plus its launcher default."""

    name: str
    validator: str = ""
    default: str = ""


class QuestionnaireSchema(BaseModel):
    """The subset of a questionnaire schema document the launcher reads."""

    model_config = ConfigDict(extra="ignore")

    eq_id: str = ""
    form_type: str = ""
    metadata: list[MetadataField] = Field(default_factory=list)


class PublishedQuestionnaire(BaseModel):
    """A questionnaire descriptor from the survey register."""

    model_config = ConfigDict(
        extra="ignore", populate_by_name=True, coerce_numbers_to_str=True
    )

    registry_id: str = ""
    survey_id: str
    form_type: str
    title: str = ""
    last_published: str = Field(default="", alias="lastPublished")
    survey_version: str = "1"
    eq_id: str | None = None
