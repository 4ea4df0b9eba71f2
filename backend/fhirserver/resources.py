"""Resource kind registry.

Every served resource kind is described by a ResourceKind: its collection in
the document store and the per-kind response differences of its handlers.
Routes are built once per registered kind at startup.
"""

from dataclasses import dataclass
from typing import Literal

from fhirserver.config import Settings, settings as default_settings
from fhirserver.schemas.resources import (
    EnrollmentRequest,
    FhirResource,
    OperationOutcome,
    RelatedPerson,
)


@dataclass(frozen=True)
class ResourceKind:
    """Configuration of one resource kind.

    Args:
        name: FHIR resource type, also the URL path segment.
        collection: Document store collection holding the records.
        model: Pydantic model request bodies are decoded into.
        location_port: Port advertised in the Location header on create.
        bundle_style: Envelope used by the index handler.
        searchable: Whether index forwards query parameters to the searcher.
        create_status: Status code of a successful create.
        create_returns_body: Whether create echoes the stored record.
        update_returns_body: Whether update echoes the stored record.
    """

    name: str
    collection: str
    model: type[FhirResource]
    location_port: int
    bundle_style: Literal["searchset", "legacy"] = "searchset"
    searchable: bool = True
    create_status: int = 201
    create_returns_body: bool = True
    update_returns_body: bool = True


# Module-level storage (not class-level to avoid shared mutable state)
_registry_kinds: dict[str, ResourceKind] = {}


class ResourceRegistry:
    """Registry of served resource kinds by name."""

    @classmethod
    def register(cls, kind: ResourceKind) -> None:
        _registry_kinds[kind.name] = kind

    @classmethod
    def get(cls, name: str) -> ResourceKind | None:
        """Get a resource kind by its FHIR type name, None if not served."""
        return _registry_kinds.get(name)

    @classmethod
    def all_kinds(cls) -> list[ResourceKind]:
        return list(_registry_kinds.values())

    @classmethod
    def _clear_for_testing(cls) -> None:
        """Clear all registered kinds. Internal use in tests only."""
        _registry_kinds.clear()


def register_default_resources(config: Settings = default_settings) -> None:
    """Register EnrollmentRequest, OperationOutcome and RelatedPerson.

    EnrollmentRequest is the only kind that supports search, answers create
    with 201 and a body, and uses the searchset Bundle. The other two keep
    the older behaviour.
    """
    ResourceRegistry.register(
        ResourceKind(
            name="EnrollmentRequest",
            collection="enrollmentrequests",
            model=EnrollmentRequest,
            location_port=config.enrollment_request_location_port,
        )
    )
    for name, collection, model, port in (
        (
            "OperationOutcome",
            "operationoutcomes",
            OperationOutcome,
            config.operation_outcome_location_port,
        ),
        (
            "RelatedPerson",
            "relatedpersons",
            RelatedPerson,
            config.related_person_location_port,
        ),
    ):
        ResourceRegistry.register(
            ResourceKind(
                name=name,
                collection=collection,
                model=model,
                location_port=port,
                bundle_style="legacy",
                searchable=False,
                create_status=200,
                create_returns_body=False,
                update_returns_body=False,
            )
        )
