"""CRUD routes for stored FHIR resources.

The same five handlers (index, show, create, update, delete) serve every
resource kind. ``build_resource_router`` binds them to one ResourceKind,
whose flags carry the per-kind differences in status codes, bodies and
index envelopes.
"""

import functools
import logging
import socket

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from fhirserver.config import settings
from fhirserver.context import set_resource_context
from fhirserver.database import get_db
from fhirserver.errors import StoreError
from fhirserver.identifiers import generate_id, is_valid_id
from fhirserver.repositories.document import DocumentRepository
from fhirserver.resources import ResourceKind
from fhirserver.schemas.bundle import LegacyBundle, SearchBundle
from fhirserver.schemas.resources import FhirResource, fatal_outcome
from fhirserver.services.search import DocumentSearcher, SearchError, SearchQuery

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json; charset=utf-8"


class FhirJSONResponse(JSONResponse):
    media_type = JSON_MEDIA_TYPE


def error_response(message: str, status_code: int) -> PlainTextResponse:
    """Plain-text error body, e.g. 'Invalid id' or a store error message."""
    return PlainTextResponse(message, status_code=status_code)


def empty_response(status_code: int = 200, headers: dict[str, str] | None = None) -> Response:
    return Response(status_code=status_code, headers=headers, media_type=JSON_MEDIA_TYPE)


def with_outcome_recovery(endpoint):
    """Turn exceptions escaping a handler into OperationOutcome responses.

    A SearchError answers with its own status and outcome; anything else
    answers 500 with a fatal/exception outcome.
    """

    @functools.wraps(endpoint)
    async def guarded(*args, **kwargs):
        try:
            return await endpoint(*args, **kwargs)
        except SearchError as e:
            logger.info("Search rejected: %s", e)
            return FhirJSONResponse(e.operation_outcome.to_record(), status_code=e.http_status)
        except Exception:
            logger.exception("Unexpected failure in %s", endpoint.__name__)
            return FhirJSONResponse(fatal_outcome(), status_code=500)

    return guarded


async def decode_resource(request: Request, kind: ResourceKind) -> FhirResource:
    """Decode the request body into the kind's model.

    Raises:
        ValidationError: If the body is not valid JSON for this kind.
    """
    body = await request.body()
    return kind.model.model_validate_json(body)


def location_url(kind: ResourceKind, resource_id: str) -> str:
    """URL of a created resource, on this host and the kind's advertised port.

    Raises:
        OSError: If the host name cannot be determined.
    """
    host = socket.gethostname()
    return f"http://{host}:{kind.location_port}/{kind.name}/{resource_id}"


def build_resource_router(kind: ResourceKind) -> APIRouter:
    """Create the index/show/create/update/delete routes for a resource kind.

    Args:
        kind: The resource kind to serve.

    Returns:
        Router mounted at /<kind.name>.
    """
    router = APIRouter(prefix=f"/{kind.name}", tags=[kind.name])
    slug = kind.name.lower()

    @router.get("", name=f"{slug}_index")
    @with_outcome_recovery
    async def index(request: Request, db: AsyncSession = Depends(get_db)) -> Response:
        """List up to the index limit, or run a search when parameters are given."""
        repo = DocumentRepository(db, kind.collection)
        try:
            if kind.searchable and request.query_params:
                query = SearchQuery(resource=kind.name, query=request.url.query)
                statement = DocumentSearcher().create_query(query)
                records = [record async for record in repo.iterate(statement)]
            else:
                records = await repo.list(settings.index_limit)
        except StoreError as e:
            return error_response(str(e), 500)

        if kind.bundle_style == "searchset":
            bundle = SearchBundle.from_records(records)
        else:
            bundle = LegacyBundle.from_records(kind.name, records)

        set_resource_context(request, kind.name, "search", records)
        return FhirJSONResponse(bundle.model_dump(mode="json"))

    @router.get("/{resource_id}", name=f"{slug}_show")
    async def show(
        resource_id: str,
        request: Request,
        db: AsyncSession = Depends(get_db),
    ) -> Response:
        if not is_valid_id(resource_id):
            return error_response("Invalid id", 400)

        try:
            record = await DocumentRepository(db, kind.collection).find(resource_id)
        except StoreError as e:
            return error_response(str(e), 500)

        set_resource_context(request, kind.name, "read", record)
        return FhirJSONResponse(record)

    @router.post("", name=f"{slug}_create")
    async def create(request: Request, db: AsyncSession = Depends(get_db)) -> Response:
        """Store a new resource under a freshly generated id."""
        try:
            resource = await decode_resource(request, kind)
        except ValidationError as e:
            return error_response(str(e), 500)

        resource.id = generate_id()
        record = resource.to_record()
        try:
            await DocumentRepository(db, kind.collection).insert(record)
        except StoreError as e:
            return error_response(str(e), 500)

        set_resource_context(request, kind.name, "create", record)

        try:
            headers = {"Location": location_url(kind, resource.id)}
        except OSError as e:
            return error_response(str(e), 500)

        if kind.create_returns_body:
            return FhirJSONResponse(record, status_code=kind.create_status, headers=headers)
        return empty_response(kind.create_status, headers)

    @router.put("/{resource_id}", name=f"{slug}_update")
    async def update(
        resource_id: str,
        request: Request,
        db: AsyncSession = Depends(get_db),
    ) -> Response:
        """Replace the whole stored resource; the URL id always wins."""
        if not is_valid_id(resource_id):
            return error_response("Invalid id", 400)

        try:
            resource = await decode_resource(request, kind)
        except ValidationError as e:
            return error_response(str(e), 500)

        resource.id = resource_id
        record = resource.to_record()
        try:
            await DocumentRepository(db, kind.collection).replace(resource_id, record)
        except StoreError as e:
            return error_response(str(e), 500)

        set_resource_context(request, kind.name, "update", record)

        if kind.update_returns_body:
            return FhirJSONResponse(record)
        return empty_response()

    @router.delete("/{resource_id}", name=f"{slug}_delete")
    async def delete(
        resource_id: str,
        request: Request,
        db: AsyncSession = Depends(get_db),
    ) -> Response:
        if not is_valid_id(resource_id):
            return error_response("Invalid id", 400)

        try:
            await DocumentRepository(db, kind.collection).remove(resource_id)
        except StoreError as e:
            return error_response(str(e), 500)

        set_resource_context(request, kind.name, "delete", resource_id)
        return empty_response()

    return router
