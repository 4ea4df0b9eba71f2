"""Repository layer for data access.

Repositories encapsulate database operations and provide a clean interface
for CRUD operations on stored resources.
"""

from fhirserver.repositories.document import DocumentRepository

__all__ = ["DocumentRepository"]
