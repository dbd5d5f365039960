"""Upload form validation for the category-specific resource schema.

A resource carries a ``category`` and a ``metadata`` object whose shape depends
on it; the form is a tagged union on ``category``.
"""

import re
from enum import Enum
from typing import Annotated, Literal, NamedTuple, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    ValidationError,
)
from pydantic.alias_generators import to_camel


class ResourceCategory(str, Enum):
    ACADEMIC = "ACADEMIC"
    ENTRANCE = "ENTRANCE"
    SKILL = "SKILL"
    GENERAL = "GENERAL"


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _check_year(value: str | None) -> str | None:
    if value is not None and not re.fullmatch(r"\d{4}", value):
        raise ValueError("Year must be a 4-digit number")
    return value


Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Required = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
OptionalText = Annotated[str | None, BeforeValidator(_blank_to_none)]
Year = Annotated[str | None, BeforeValidator(_blank_to_none), AfterValidator(_check_year)]
Level = Literal["Beginner", "Intermediate", "Advanced"]


class _Form(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AcademicMetadata(_Form):
    course: Name
    semester: OptionalText = None
    subject: Name
    doc_type: Required
    university: OptionalText = None


class EntranceMetadata(_Form):
    exam: Name
    year: Year = None
    paper_type: Required
    branch: OptionalText = None


class SkillMetadata(_Form):
    topic: Name
    level: Level
    format: OptionalText = None
    skill_category: OptionalText = None


class GeneralMetadata(_Form):
    topic: OptionalText = None
    description: OptionalText = None


class _BaseResourceForm(_Form):
    title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=200)]
    description: Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=2000)]
    tags: OptionalText = None


class AcademicForm(_BaseResourceForm):
    category: Literal["ACADEMIC"]
    metadata: AcademicMetadata


class EntranceForm(_BaseResourceForm):
    category: Literal["ENTRANCE"]
    metadata: EntranceMetadata


class SkillForm(_BaseResourceForm):
    category: Literal["SKILL"]
    metadata: SkillMetadata


class GeneralForm(_BaseResourceForm):
    category: Literal["GENERAL"]
    metadata: GeneralMetadata


ResourceForm = Annotated[
    Union[AcademicForm, EntranceForm, SkillForm, GeneralForm],
    Field(discriminator="category"),
]

_resource_form = TypeAdapter(ResourceForm)


class FormResult(NamedTuple):
    success: bool
    data: BaseModel | None = None
    errors: ValidationError | None = None


def validate_resource_form(data) -> FormResult:
    try:
        return FormResult(True, _resource_form.validate_python(data))
    except ValidationError as e:
        return FormResult(False, errors=e)


_DEFAULT_METADATA = {
    ResourceCategory.ACADEMIC: AcademicMetadata,
    ResourceCategory.ENTRANCE: EntranceMetadata,
    ResourceCategory.SKILL: SkillMetadata,
    ResourceCategory.GENERAL: GeneralMetadata,
}


def default_metadata(category) -> dict:
    """Blank metadata for ``category``, used when the form switches category."""
    model = _DEFAULT_METADATA.get(_category(category), GeneralMetadata)
    return {field.alias or name: "" for name, field in model.model_fields.items()}


def default_form_values(category) -> dict:
    category = _category(category) or ResourceCategory.GENERAL
    return {
        "title": "",
        "description": "",
        "tags": "",
        "category": category.value,
        "metadata": default_metadata(category),
    }


# ── Browse filters ────────────────────────────────────────

class FilterParams(_Form):
    category: ResourceCategory | None = None
    search: str | None = None
    sort_by: Literal["latest", "popular", "relevant"] = "latest"
    course: str | None = None
    semester: str | None = None
    subject: str | None = None
    doc_type: str | None = None
    exam: str | None = None
    year: Year = None
    paper_type: str | None = None
    topic: str | None = None
    level: Level | None = None
    format: str | None = None


_CATEGORY_FILTERS = {
    ResourceCategory.ACADEMIC: ("course", "semester", "subject", "doc_type"),
    ResourceCategory.ENTRANCE: ("exam", "year", "paper_type"),
    ResourceCategory.SKILL: ("topic", "level", "format"),
    ResourceCategory.GENERAL: (),
}


def sanitize_filter_params(params: dict) -> FilterParams:
    """Parse query params, dropping filters that don't apply to the chosen category.

    Anything unparseable yields the defaults.
    """
    try:
        parsed = FilterParams.model_validate(params)
    except ValidationError:
        return FilterParams()
    keep = ("category", "search", "sort_by") + _CATEGORY_FILTERS.get(parsed.category, ())
    return FilterParams(**{name: getattr(parsed, name) for name in keep})


def is_valid_filter_for_category(param: str, category) -> bool:
    category = _category(category)
    if category is None:
        return False
    return param in {to_camel(name) for name in _CATEGORY_FILTERS[category]}


def normalize_option_value(value: str) -> str:
    """'  data STRUCTURES ' -> 'Data Structures'"""
    return " ".join(word[:1].upper() + word[1:].lower() for word in value.strip().split(" "))


def _category(value) -> ResourceCategory | None:
    if value is None:
        return None
    try:
        return ResourceCategory(value)
    except ValueError:
        return None
