"""
Django Ninja API configuration.
"""

import logging
from typing import Any
from ninja import NinjaAPI
from ninja.renderers import JSONRenderer
from ninja.errors import ValidationError, HttpError, AuthenticationError
from django.http import HttpRequest, HttpResponse
from pydantic import ValidationError as PydanticValidationError

from utils.exceptions import InklingError

logger = logging.getLogger(__name__)


def error_envelope(status_code: int, message: str, errors: list[dict] | None = None) -> dict:
    """Error body: {status: "fail" | "error", message, errors?}."""
    body: dict[str, Any] = {
        "status": "fail" if status_code < 500 else "error",
        "message": message,
    }
    if errors:
        body["errors"] = errors
    return body


def field_errors(errors: list[dict]) -> list[dict]:
    """Convert pydantic/ninja error entries into [{field, message}]."""
    result = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path"):
            source = loc.pop(0)
            # Body errors are nested under the schema argument name
            if source == "body" and len(loc) > 1:
                loc.pop(0)
        entry = {"message": err.get("msg", "Invalid value")}
        if loc:
            entry["field"] = ".".join(loc)
        result.append(entry)
    return result


class EnvelopeRenderer(JSONRenderer):
    """Render every non-2xx body as the error envelope; success bodies pass through."""

    def render(self, request: HttpRequest, data: Any, *, response_status: int) -> Any:
        if response_status < 400:
            return super().render(request, data, response_status=response_status)

        # Handlers below already build the envelope
        if isinstance(data, dict) and "status" in data and "message" in data:
            return super().render(request, data, response_status=response_status)

        if isinstance(data, dict) and "detail" in data:
            message = str(data["detail"])
        else:
            message = str(data) if data else "Request failed"
        return super().render(
            request, error_envelope(response_status, message), response_status=response_status
        )


api = NinjaAPI(
    title="Inkling Insights API",
    version="1.0.0",
    description="Blog and news CMS: posts, categories and AI-assisted drafting",
    renderer=EnvelopeRenderer(),
)


@api.exception_handler(InklingError)
def inkling_errors(request: HttpRequest, exc: InklingError) -> HttpResponse:
    if exc.status_code >= 500:
        logger.error(f"[API] {request.method} {request.path}: {exc.message}")
    return api.create_response(
        request,
        error_envelope(exc.status_code, exc.message, exc.errors),
        status=exc.status_code,
    )


@api.exception_handler(ValidationError)
def validation_errors(request: HttpRequest, exc: ValidationError) -> HttpResponse:
    return api.create_response(
        request,
        error_envelope(422, "Validation failed", field_errors(exc.errors)),
        status=422,
    )


@api.exception_handler(PydanticValidationError)
def pydantic_validation_errors(request: HttpRequest, exc: PydanticValidationError) -> HttpResponse:
    return api.create_response(
        request,
        error_envelope(422, "Validation failed", field_errors(exc.errors())),
        status=422,
    )


@api.exception_handler(AuthenticationError)
def authentication_errors(request: HttpRequest, exc: AuthenticationError) -> HttpResponse:
    return api.create_response(
        request,
        error_envelope(401, "Authentication required"),
        status=401,
    )


@api.exception_handler(HttpError)
def http_error_handler(request: HttpRequest, exc: HttpError) -> HttpResponse:
    return api.create_response(
        request,
        error_envelope(exc.status_code, str(exc)),
        status=exc.status_code,
    )


@api.exception_handler(Exception)
def generic_error_handler(request: HttpRequest, exc: Exception) -> HttpResponse:
    logger.exception(f"[API] Unhandled error on {request.method} {request.path}")
    return api.create_response(
        request,
        error_envelope(500, "Internal server error"),
        status=500,
    )


# Health check
@api.get("/health")
def health_check(request: HttpRequest) -> dict:
    return {"status": "ok", "version": "1.0.0"}


# Import and register routers
from apps.auth.api import router as auth_router
from apps.blog.api import router as blog_router
from apps.categories.api import router as categories_router
from apps.admin.api import router as admin_router

api.add_router("/auth", auth_router, tags=["Auth"])
api.add_router("/blog", blog_router, tags=["Blog"])
api.add_router("/categories", categories_router, tags=["Categories"])
api.add_router("/admin", admin_router, tags=["Admin"])
