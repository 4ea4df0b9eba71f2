"""Pydantic schemas."""

from fhirserver.schemas.bundle import BundleEntry, LegacyBundle, SearchBundle
from fhirserver.schemas.resources import (
    EnrollmentRequest,
    FhirResource,
    OperationOutcome,
    OperationOutcomeIssue,
    RelatedPerson,
    error_outcome,
    fatal_outcome,
)

__all__ = [
    "BundleEntry",
    "EnrollmentRequest",
    "FhirResource",
    "LegacyBundle",
    "OperationOutcome",
    "OperationOutcomeIssue",
    "RelatedPerson",
    "SearchBundle",
    "error_outcome",
    "fatal_outcome",
]
