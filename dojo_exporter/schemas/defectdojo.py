"""Pydantic schemas for the DefectDojo v2 API records the exporter reads."""

from datetime import datetime, timezone
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a paginated list endpoint. `next` is an absolute URL or null on the last page."""

    model_config = ConfigDict(extra="ignore")

    next: str | None = Field(default=None, description="URL of the next page, if any.")
    results: list[T] = Field(default_factory=list)


class Product(BaseModel):
    """A DefectDojo product. `name` doubles as the metric label and state key."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int
    type_id: int = Field(alias="prod_type", description="Product type id.")
    name: str


class ProductType(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str


class Engagement(BaseModel):
    """Assessment activity on a product; `updated` is used as a freshness marker."""

    model_config = ConfigDict(extra="ignore")

    id: int
    product: int
    updated: datetime | None = None

    @field_validator("updated")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        # Mixed naive/aware values cannot be compared; naive means UTC.
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class Finding(BaseModel):
    """A vulnerability record. Status flags are independent; several may be true at once."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    severity: str = ""
    cwe: int = 0
    active: bool = False
    duplicate: bool = False
    under_review: bool = False
    false_positive: bool = Field(default=False, alias="false_p")
    out_of_scope: bool = False
    risk_accepted: bool = False
    verified: bool = False
    mitigated: bool = Field(default=False, alias="is_mitigated")

    @field_validator("cwe", mode="before")
    @classmethod
    def null_cwe_as_zero(cls, v: object) -> object:
        return 0 if v is None else v

    @field_validator("severity", mode="before")
    @classmethod
    def null_severity_as_empty(cls, v: object) -> object:
        return "" if v is None else v
