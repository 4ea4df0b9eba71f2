"""Bundle envelopes for index and search responses.

Two shapes are served: the standard ``searchset`` Bundle, and an older
envelope with ``title``/``updated``/``totalResults``/``entries`` that some
resource kinds still use.
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from fhirserver.identifiers import generate_id


class BundleEntry(BaseModel):
    """One resource in a searchset bundle."""

    resource: dict[str, Any]


class SearchBundle(BaseModel):
    """FHIR searchset Bundle. ``total`` is the number of entries returned."""

    resourceType: Literal["Bundle"] = "Bundle"
    id: str = Field(default_factory=generate_id)
    type: Literal["searchset"] = "searchset"
    total: int = Field(ge=0)
    entry: list[BundleEntry] = []

    @classmethod
    def from_records(cls, records: list[dict]) -> "SearchBundle":
        return cls(
            total=len(records),
            entry=[BundleEntry(resource=record) for record in records],
        )


class LegacyBundle(BaseModel):
    """Pre-searchset index envelope."""

    id: str = Field(default_factory=generate_id)
    type: Literal["Bundle"] = "Bundle"
    title: str
    updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    totalResults: int = Field(ge=0)
    entries: list[dict[str, Any]] = []

    @classmethod
    def from_records(cls, resource_type: str, records: list[dict]) -> "LegacyBundle":
        return cls(
            title=f"{resource_type} Index",
            totalResults=len(records),
            entries=records,
        )
