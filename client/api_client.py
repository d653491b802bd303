"""
REST client for the Inkling Insights API, and the remote collection source
built on it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx

from apps.blog.domain import NamedAuthor, PostCriteria, PostRecord, RoleAuthor, parse_author
from apps.blog.rules import parse_publish_date
from utils.exceptions import AuthError, NotFound, TransportError, ValidationError
from .config import get_client_config

logger = logging.getLogger(__name__)

# PostRecord fields -> camelCase wire names
WIRE_NAMES = {
    "title": "title",
    "slug": "slug",
    "excerpt": "excerpt",
    "content": "content",
    "source_url": "sourceUrl",
    "image_url": "imageUrl",
    "category": "category",
    "tags": "tags",
    "author": "author",
    "status": "status",
    "publish_date": "publishDate",
    "featured": "featured",
}

LIST_PAGE_LIMIT = 100


def to_wire(fields: dict[str, Any]) -> dict[str, Any]:
    """Convert domain-named post fields into a JSON-ready camelCase body."""
    body = {}
    for name, value in fields.items():
        if name not in WIRE_NAMES:
            raise ValidationError.for_field(name, "Unknown field")
        if isinstance(value, (RoleAuthor, NamedAuthor)):
            value = value.to_dict()
        elif isinstance(value, datetime):
            value = value.isoformat()
        body[WIRE_NAMES[name]] = value
    return body


def record_from_wire(data: dict[str, Any]) -> PostRecord:
    """Build a PostRecord from an API post body. Malformed bodies raise TransportError."""
    try:
        return PostRecord(
            id=str(data["id"]),
            slug=data.get("slug", ""),
            title=data.get("title", ""),
            category=data.get("category", ""),
            excerpt=data.get("excerpt") or "",
            content=data.get("content") or "",
            source_url=data.get("sourceUrl"),
            tags=list(data.get("tags") or []),
            image_url=data.get("imageUrl"),
            author=parse_author(data.get("author")),
            status=data.get("status", "draft"),
            publish_date=parse_publish_date(data["publishDate"]),
            featured=bool(data.get("featured", False)),
        )
    except (KeyError, TypeError, ValueError, AttributeError, ValidationError) as e:
        logger.error(f"[BlogAPI] Malformed post in response: {e!r}")
        raise TransportError(f"Malformed post in API response: {e}")


class BlogAPI:
    """
    Thin synchronous client over the REST surface.

    Every failure is raised as one of the application errors: NotFound,
    ValidationError, AuthError or TransportError.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token_provider: Callable[[], str | None] | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        config = get_client_config()
        self.base_url = (base_url or config.api_url).rstrip("/")
        self.token_provider = token_provider
        self.http_client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else config.timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self.http_client.close()

    def __enter__(self) -> BlogAPI:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        # Missing tokens are fine: the request goes out unauthenticated
        token = self.token_provider() if self.token_provider else None
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self.http_client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"[BlogAPI] {method} {path} failed: {e}")
            raise TransportError(f"Request failed: {e}")

        if response.is_success:
            if response.status_code == 204 or not response.content:
                return None
            try:
                return response.json()
            except ValueError:
                raise TransportError(f"Invalid JSON from {method} {path}")

        raise self._error_for(method, path, response)

    def _error_for(self, method: str, path: str, response: httpx.Response) -> Exception:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or f"{method} {path} returned {response.status_code}"
        errors = body.get("errors")
        status = response.status_code

        logger.warning(f"[BlogAPI] {method} {path} -> {status}: {message}")
        if status == 404:
            return NotFound(message)
        if status in (401, 403):
            return AuthError(message)
        if status >= 500:
            return TransportError(message)
        return ValidationError(message, errors=errors)

    # ============ Posts ============

    def list_posts(self, **params) -> dict:
        query = {k: v for k, v in params.items() if v is not None}
        if isinstance(query.get("featured"), bool):
            query["featured"] = "true" if query["featured"] else "false"
        return self._request("GET", "/blog/posts", params=query)

    def get_post(self, post_id: str) -> dict:
        return self._request("GET", f"/blog/posts/{post_id}")

    def get_post_by_slug(self, slug: str) -> dict:
        return self._request("GET", f"/blog/posts/slug/{slug}")

    def create_post(self, body: dict) -> dict:
        return self._request("POST", "/blog/posts", json=body)

    def update_post(self, post_id: str, body: dict) -> dict:
        return self._request("PUT", f"/blog/posts/{post_id}", json=body)

    def delete_post(self, post_id: str) -> None:
        self._request("DELETE", f"/blog/posts/{post_id}")

    # ============ Categories ============

    def list_categories(self) -> list[dict]:
        return self._request("GET", "/categories/")

    def list_tags(self) -> list[str]:
        return self._request("GET", "/blog/tags")

    # ============ AI helpers ============

    def summarize(self, content: str) -> dict:
        return self._request("POST", "/blog/summarize", json={"content": content})

    def generate_post(self, keyword: str, category: str, **options) -> dict:
        body = {"keyword": keyword, "category": category}
        body.update({k: v for k, v in options.items() if v is not None})
        return self._request("POST", "/blog/generate-post", json=body)

    def available_models(self) -> list[dict]:
        return self._request("GET", "/blog/models")

    # ============ Auth ============

    def verify_token(self, id_token: str) -> dict:
        return self._request("POST", "/auth/verify-token", json={"idToken": id_token})


class RemotePostSource:
    """
    Collection source backed by the REST API.

    list() narrows on the server and walks every page; callers run the
    pipeline over the result themselves.
    """

    def __init__(self, api: BlogAPI):
        self.api = api

    def list(self, criteria: PostCriteria | None = None) -> list[PostRecord]:
        params: dict[str, Any] = {}
        if criteria is not None:
            params = {
                "search": criteria.search_term or None,
                "category": criteria.category or None,
                "tag": criteria.tag or None,
                "status": criteria.status or None,
                "featured": criteria.featured,
            }

        records: list[PostRecord] = []
        page = 1
        while True:
            data = self.api.list_posts(page=page, limit=LIST_PAGE_LIMIT, **params)
            records.extend(record_from_wire(item) for item in data.get("posts", []))
            total_pages = data.get("pagination", {}).get("totalPages", 0)
            if page >= total_pages:
                break
            page += 1
        logger.debug(f"[RemoteSource] Loaded {len(records)} posts over {page} pages")
        return records

    def get(self, post_id: str) -> PostRecord:
        return record_from_wire(self.api.get_post(post_id))

    def get_by_slug(self, slug: str) -> PostRecord:
        return record_from_wire(self.api.get_post_by_slug(slug))

    def create(self, draft: dict[str, Any]) -> PostRecord:
        return record_from_wire(self.api.create_post(to_wire(draft)))

    def update(self, post_id: str, changes: dict[str, Any]) -> PostRecord:
        return record_from_wire(self.api.update_post(post_id, to_wire(changes)))

    def delete(self, post_id: str) -> None:
        self.api.delete_post(post_id)

    def categories(self) -> list[str]:
        return [c["name"] for c in self.api.list_categories()]
