"""
Error taxonomy shared by the API, the collection sources and the client.

Every error maps to one HTTP status and one envelope kind, see core/api.py.
"""


class InklingError(Exception):
    """Base exception for all Inkling errors."""

    status_code = 500

    def __init__(self, message: str = "", errors: list[dict] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class NotFound(InklingError):
    """Raised when an entity id or slug does not match any record."""

    status_code = 404

    def __init__(self, message: str = "Not found", errors: list[dict] | None = None):
        super().__init__(message, errors)


class ValidationError(InklingError):
    """Raised on malformed input (unknown category, duplicate slug, bad URL...)."""

    status_code = 422

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, errors=[{"field": field, "message": message}])


class AuthError(InklingError):
    """Raised when a token is missing where required, expired or invalid."""

    status_code = 401


class PermissionDenied(AuthError):
    """Raised when the caller is authenticated but lacks the admin role."""

    status_code = 403


class TransportError(InklingError):
    """Raised on network failures, timeouts and 5xx answers from a remote service."""

    status_code = 502


class AIServiceError(InklingError):
    """Raised when the text-generation service answers with unusable output."""

    status_code = 502
