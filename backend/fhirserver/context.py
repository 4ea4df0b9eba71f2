"""Request-scoped resource context.

Handlers record which resource kind and action a request performed, along
with the affected payload, on ``request.state``. Middleware reads it back
after the response has been produced.
"""

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)


@dataclass
class RequestContext:
    """What a request did.

    Attributes:
        resource: FHIR resource type, e.g. "EnrollmentRequest".
        action: One of "search", "read", "create", "update", "delete".
        payload: Result list, record, or deleted id.
    """

    resource: str
    action: str
    payload: Any = None


def set_resource_context(request: Request, resource: str, action: str, payload: Any) -> None:
    logger.info("Setting %s %s context", resource.lower(), action)
    request.state.resource_context = RequestContext(resource, action, payload)


def get_resource_context(request: Request) -> RequestContext | None:
    return getattr(request.state, "resource_context", None)


class ResourceContextMiddleware(BaseHTTPMiddleware):
    """Log the resource context of every completed request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        context = get_resource_context(request)
        if context is not None:
            logger.info(
                "%s %s -> %d [%s %s]",
                request.method,
                request.url.path,
                response.status_code,
                context.resource,
                context.action,
            )
        return response
