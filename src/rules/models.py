from typing import Literal

from pydantic import BaseModel, Field, model_validator

FieldType = Literal["string", "number", "integer"]
SortOrder = Literal["asc", "desc"]


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class SortField(BaseModel):
    param: str
    column: str


class ListingRules(BaseModel):
    default_page: int = 1
    default_limit: int = 10
    min_limit: int = 1
    max_limit: int = 100
    max_search_length: int = 100
    search_column: str
    sort_fields: list[SortField]
    default_sort_by: str
    default_sort_order: SortOrder = "desc"

    @model_validator(mode="after")
    def _check_defaults(self) -> "ListingRules":
        if not self.min_limit <= self.default_limit <= self.max_limit:
            raise ValueError("default_limit must lie within [min_limit, max_limit]")
        if self.default_sort_by not in {f.param for f in self.sort_fields}:
            raise ValueError("default_sort_by must be one of sort_fields")
        return self

    def column_for(self, param: str) -> str | None:
        for field in self.sort_fields:
            if field.param == param:
                return field.column
        return None


class FieldRule(BaseModel):
    type: FieldType
    required: bool = False
    min_length: int | None = None
    max_length: int | None = None
    gt: float | None = None
    ge: float | None = None
    le: float | None = None
    choices: list[str] | None = None
    default: str | float | int | None = None


class ResourceSchemaRules(BaseModel):
    fields: dict[str, FieldRule]
    server_managed: list[str] = Field(default_factory=list)


class PolicyRules(BaseModel):
    public_read_visibility: list[str]


class OpsRules(BaseModel):
    data_dir_required: bool
    required_env: list[str]


class Rules(BaseModel):
    project: ProjectRules
    listing: ListingRules
    resource_schema: ResourceSchemaRules
    policy: PolicyRules
    ops: OpsRules
