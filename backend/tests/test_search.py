"""Tests for the search query compiler."""

import pytest

from fhirserver.identifiers import generate_id
from fhirserver.repositories.document import DocumentRepository
from fhirserver.services.search import DocumentSearcher, SearchError, SearchQuery


@pytest.fixture
async def stored(db_session) -> list[dict]:
    """Three enrollment requests and one related person."""
    repo = DocumentRepository(db_session, "enrollmentrequests")
    records = [
        {
            "resourceType": "EnrollmentRequest",
            "id": generate_id(),
            "status": "active",
            "candidate": {"reference": "Patient/1"},
        },
        {
            "resourceType": "EnrollmentRequest",
            "id": generate_id(),
            "status": "cancelled",
            "candidate": {"reference": "Patient/2"},
        },
        {
            "resourceType": "EnrollmentRequest",
            "id": generate_id(),
            "status": "draft",
            "candidate": {"reference": "Patient/1"},
        },
    ]
    for record in records:
        await repo.insert(record)
    await DocumentRepository(db_session, "relatedpersons").insert(
        {"resourceType": "RelatedPerson", "id": generate_id(), "status": "active"}
    )
    return records


async def search(db_session, query: str, resource: str = "EnrollmentRequest", **kwargs) -> list[dict]:
    statement = DocumentSearcher(**kwargs).create_query(SearchQuery(resource=resource, query=query))
    repo = DocumentRepository(db_session, "unused")
    return [record async for record in repo.iterate(statement)]


class TestCreateQuery:
    async def test_field_equality(self, db_session, stored):
        assert await search(db_session, "status=active") == [stored[0]]

    async def test_comma_values_match_any(self, db_session, stored):
        assert await search(db_session, "status=active,draft") == [stored[0], stored[2]]

    async def test_repeated_parameters_match_all(self, db_session, stored):
        result = await search(db_session, "candidate.reference=Patient%2F1&status=draft")
        assert result == [stored[2]]

    async def test_nested_field(self, db_session, stored):
        result = await search(db_session, "candidate.reference=Patient/1")
        assert result == [stored[0], stored[2]]

    async def test_id(self, db_session, stored):
        query = f"_id={stored[1]['id']},{stored[2]['id']}"
        assert await search(db_session, query) == stored[1:]

    async def test_count(self, db_session, stored):
        assert await search(db_session, "_count=2") == stored[:2]

    async def test_default_count(self, db_session, stored):
        assert await search(db_session, "status=active,cancelled,draft", default_count=1) == stored[:1]

    async def test_blank_values_ignored(self, db_session, stored):
        assert await search(db_session, "status=") == stored

    async def test_scoped_to_resource(self, db_session, stored):
        result = await search(db_session, "status=active", resource="RelatedPerson")
        assert [r["resourceType"] for r in result] == ["RelatedPerson"]


class TestSearchErrors:
    @pytest.mark.parametrize("query", ["_count=0", "_count=-3", "_count=many"])
    def test_invalid_count(self, query):
        with pytest.raises(SearchError) as exc_info:
            DocumentSearcher().create_query(SearchQuery("EnrollmentRequest", query))

        assert exc_info.value.http_status == 400
        assert exc_info.value.operation_outcome.issue[0].code == "invalid"

    @pytest.mark.parametrize("query", ["_sort=status", "status:exact=active", "9lives=1"])
    def test_unsupported_parameter(self, query):
        with pytest.raises(SearchError) as exc_info:
            DocumentSearcher().create_query(SearchQuery("EnrollmentRequest", query))

        assert exc_info.value.http_status == 400
        assert exc_info.value.operation_outcome.issue[0].code == "not-supported"

    def test_unknown_resource(self):
        with pytest.raises(SearchError, match='unsupported FHIR resource: "Patient"'):
            DocumentSearcher().create_query(SearchQuery("Patient", "name=x"))
