"""SQLAlchemy models."""

from fhirserver.models.document import Document

__all__ = ["Document"]
