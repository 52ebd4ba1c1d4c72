"""Pydantic models for employee payloads, queries and operation results.

Attributes are snake_case; aliases are the camelCase keys used both in the
persisted documents and in the HTTP API (createdAt, isDeleted, minAge, ...).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
MIN_AGE = 18


class CamelModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ============================================================================
# Input payloads
# ============================================================================


class EmployeeCreate(CamelModel):
    """Payload for creating one employee."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    surnames: str = Field(min_length=1)
    age: int = Field(ge=MIN_AGE, strict=True)
    city: str = Field(min_length=1)
    email: str = Field(pattern=EMAIL_PATTERN)
    position: str = Field(min_length=1)
    department: str = Field(min_length=1)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump()


class EmployeeUpdate(CamelModel):
    """Identified partial payload. Only the fields actually supplied are written."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str | None = Field(default=None, min_length=1)
    surnames: str | None = Field(default=None, min_length=1)
    age: int | None = Field(default=None, ge=MIN_AGE, strict=True)
    city: str | None = Field(default=None, min_length=1)
    email: str | None = Field(default=None, pattern=EMAIL_PATTERN)
    position: str | None = Field(default=None, min_length=1)
    department: str | None = Field(default=None, min_length=1)

    def changes(self) -> dict[str, Any]:
        """Supplied mutable fields; the identifier is never included."""
        return self.model_dump(exclude={"id"}, exclude_unset=True, exclude_none=True)


class EmployeeQuery(CamelModel):
    """Filter, sort and window request for listing.

    Values are not range-checked here; the query builder rejects bad ones.
    """

    name: str | None = None
    surnames: str | None = None
    city: str | None = None
    position: str | None = None
    department: str | None = None
    min_age: int | None = None
    max_age: int | None = None
    sort_by: str | None = None
    sort_order: str = "asc"
    page: int = 1
    limit: int = 10


# ============================================================================
# Stored record
# ============================================================================


class Employee(CamelModel):
    id: str
    name: str = ""
    surnames: str = ""
    age: int | None = None
    city: str = ""
    email: str = ""
    position: str = ""
    department: str = ""
    created_at: datetime
    updated_at: datetime
    is_deleted: bool = False

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> Employee:
        data = dict(document)
        data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)


# ============================================================================
# Operation results
# ============================================================================


class CreateResult(CamelModel):
    inserted_id: str


class InsertOutcome(CamelModel):
    """Outcome of one payload in a bulk insert, keyed by its input position."""

    index: int
    success: bool
    id: str | None = None
    error: str | None = None
    code: int | None = None


class BulkCreateResult(CamelModel):
    inserted_ids: list[str]
    outcomes: list[InsertOutcome]

    @computed_field(alias="insertedCount")
    @property
    def inserted_count(self) -> int:
        return len(self.inserted_ids)

    @computed_field(alias="failedCount")
    @property
    def failed_count(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)


class UpdateResult(CamelModel):
    matched_count: int
    modified_count: int


class WriteFailure(CamelModel):
    """A per-entry write error reported by a bulk update."""

    index: int
    id: str | None = None
    error: str
    code: int | None = None


class BulkUpdateResult(CamelModel):
    requested_count: int
    matched_count: int
    modified_count: int
    failures: list[WriteFailure] = Field(default_factory=list)


class DeleteResult(CamelModel):
    matched_count: int
    deleted_count: int


class Pagination(CamelModel):
    total: int
    page: int
    limit: int
    pages: int


class EmployeePage(CamelModel):
    data: list[Employee]
    pagination: Pagination
