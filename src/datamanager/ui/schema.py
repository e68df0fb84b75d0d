"""Pydantic models for query payloads given on the command line."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, JsonValue

from datamanager.domain.criteria import criteria_from_mapping
from datamanager.domain.export import ExportQuery, PopulateSpec


class QueryBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class PopulatePayload(QueryBaseModel):
    name: str
    criteria: dict[str, JsonValue] | None = None


class ExportQueryPayload(QueryBaseModel):
    """``{"criteria": {...}, "populate": ..., "skip": 0, "limit": 10, "sort": "name desc"}``."""

    criteria: dict[str, JsonValue] | None = Field(default=None, alias="where")
    populate: str | list[str] | PopulatePayload | None = None
    skip: int | None = Field(default=None, ge=0)
    limit: int | None = Field(default=None, ge=0)
    sort: str | dict[str, str] | None = None

    def to_query(self) -> ExportQuery:
        populate: str | list[str] | PopulateSpec | None
        if isinstance(self.populate, PopulatePayload):
            populate = PopulateSpec(
                name=self.populate.name,
                criteria=criteria_from_mapping(self.populate.criteria),
            )
        else:
            populate = self.populate
        return ExportQuery(
            criteria=criteria_from_mapping(self.criteria),
            populate=populate,
            skip=self.skip,
            limit=self.limit,
            sort=self.sort,
        )
