"""Search query compiler for the index routes.

Turns a resource type plus the raw URL query string into a SQLAlchemy
statement over that type's collection:

- ``_id=a,b``       restrict to the listed ids
- ``_count=n``      return at most n records
- ``field=value``   equality on the top-level JSON field (dotted names walk
                    into nested objects, e.g. ``patient.reference=...``)

Comma-separated values match any of the values; repeated parameters must
all match. Values are compared as strings.
"""

import re
from dataclasses import dataclass
from urllib.parse import parse_qsl

from sqlalchemy import Select, or_, select

from fhirserver.config import settings
from fhirserver.models.document import Document
from fhirserver.resources import ResourceRegistry
from fhirserver.schemas.resources import OperationOutcome, error_outcome

_FIELD_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9]*(\.[A-Za-z][A-Za-z0-9]*)*$")


@dataclass(frozen=True)
class SearchQuery:
    """A search request for one resource type.

    Attributes:
        resource: FHIR resource type, e.g. "EnrollmentRequest".
        query: Raw URL query string, without the leading '?'.
    """

    resource: str
    query: str


class SearchError(Exception):
    """Search request that cannot be compiled.

    Carries the HTTP status and the OperationOutcome to send back.
    """

    def __init__(self, http_status: int, operation_outcome: OperationOutcome):
        self.http_status = http_status
        self.operation_outcome = operation_outcome
        message = "; ".join(i.diagnostics or i.code for i in operation_outcome.issue)
        super().__init__(message)

    @classmethod
    def bad_request(cls, code: str, diagnostics: str) -> "SearchError":
        return cls(400, error_outcome(code, diagnostics))


class DocumentSearcher:
    """Compiles SearchQuery values into document store statements."""

    def __init__(self, default_count: int | None = None):
        self.default_count = default_count or settings.search_default_count

    def create_query(self, query: SearchQuery) -> Select:
        """Compile a search into a select over the matching documents.

        Raises:
            SearchError: If the resource type is not served or a parameter
                is not supported.
        """
        kind = ResourceRegistry.get(query.resource)
        if kind is None:
            raise SearchError.bad_request(
                "not-supported", f'unsupported FHIR resource: "{query.resource}"'
            )

        statement = select(Document).where(Document.collection == kind.collection)
        count = self.default_count

        for name, value in parse_qsl(query.query, keep_blank_values=False):
            values = [v for v in value.split(",") if v]
            if not values:
                continue

            if name == "_count":
                count = self._parse_count(value)
            elif name == "_id":
                statement = statement.where(Document.id.in_(values))
            elif name.startswith("_") or not _FIELD_PATTERN.match(name):
                raise SearchError.bad_request(
                    "not-supported", f'unsupported search parameter: "{name}"'
                )
            else:
                statement = statement.where(self._field_clause(name, values))

        return statement.order_by(Document.id).limit(count)

    @staticmethod
    def _parse_count(value: str) -> int:
        try:
            count = int(value)
        except ValueError:
            count = 0
        if count < 1:
            raise SearchError.bad_request(
                "invalid", f'_count must be a positive integer, got "{value}"'
            )
        return count

    @staticmethod
    def _field_clause(name: str, values: list[str]):
        path = tuple(name.split("."))
        field = Document.data[path[0]] if len(path) == 1 else Document.data[path]
        return or_(*[field.as_string() == v for v in values])
