"""Pydantic models for the stored FHIR resource kinds.

Only the envelope fields are typed, and they are validated strictly so a
wrong-typed value is rejected rather than converted. Everything else in a
resource body is kept as-is (``extra="allow"``) and written back unchanged.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict


class FhirResource(BaseModel):
    """Common envelope of every stored resource."""

    model_config = ConfigDict(extra="allow", strict=True)

    resourceType: str
    id: str | None = None

    def to_record(self) -> dict:
        """Dump to the JSON dict that is stored and returned to clients."""
        record = self.model_dump(mode="json", exclude_none=True)
        # Explicit nulls in unknown fields are kept as sent
        record.update({k: v for k, v in (self.model_extra or {}).items() if v is None})
        return record


class EnrollmentRequest(FhirResource):
    """Request to enroll a patient in an insurance plan."""

    resourceType: Literal["EnrollmentRequest"] = "EnrollmentRequest"
    status: str | None = None


class RelatedPerson(FhirResource):
    """Person related to a patient but not the target of care."""

    resourceType: Literal["RelatedPerson"] = "RelatedPerson"
    active: bool | None = None


class OperationOutcomeIssue(BaseModel):
    """A single error, warning or information message."""

    model_config = ConfigDict(extra="allow", strict=True)

    severity: Literal["fatal", "error", "warning", "information"]
    code: str
    diagnostics: str | None = None


class OperationOutcome(FhirResource):
    """Outcome of an operation; stored as a resource and used as error body."""

    resourceType: Literal["OperationOutcome"] = "OperationOutcome"
    issue: list[OperationOutcomeIssue] = []


def fatal_outcome() -> dict:
    """Synthetic outcome returned when a handler fails unexpectedly."""
    outcome = OperationOutcome(
        issue=[OperationOutcomeIssue(severity="fatal", code="exception")]
    )
    return outcome.to_record()


def error_outcome(code: str, diagnostics: str) -> OperationOutcome:
    """Outcome describing a rejected request."""
    return OperationOutcome(
        issue=[OperationOutcomeIssue(severity="error", code=code, diagnostics=diagnostics)]
    )
